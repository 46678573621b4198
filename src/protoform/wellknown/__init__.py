from protoform.schema.models import WellKnownType

from .transcoders import (
    AnyTranscoder,
    DurationTranscoder,
    EmptyTranscoder,
    ListValueTranscoder,
    NullValueTranscoder,
    StructTranscoder,
    TimestampTranscoder,
    ValueTranscoder,
    WellKnownTranscoder,
    unwrap_value,
    wrap_value,
)

TRANSCODERS: dict[WellKnownType, WellKnownTranscoder] = {
    transcoder.well_known_type: transcoder
    for transcoder in (
        TimestampTranscoder(),
        DurationTranscoder(),
        StructTranscoder(),
        ValueTranscoder(),
        ListValueTranscoder(),
        AnyTranscoder(),
        NullValueTranscoder(),
        EmptyTranscoder(),
    )
}


def get_transcoder(well_known_type: WellKnownType) -> WellKnownTranscoder:
    """
    Get the transcoder of a well-known type.

    Raises:
        KeyError: If no transcoder handles the type
    """
    return TRANSCODERS[well_known_type]


__all__ = [
    "TRANSCODERS",
    "WellKnownTranscoder",
    "get_transcoder",
    "unwrap_value",
    "wrap_value",
]
