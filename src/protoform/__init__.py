from protoform.logger import get_logger

__author__ = """Protoform Developers"""
__version__ = "0.1.0"

log = get_logger("protoform")
