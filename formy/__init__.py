__all__ = [
    "FormEncoder",
    "EncoderState",
    "encode_form",
    "MultipartWriter",
    "PartWriter",
    "detect",
    "FieldValue",
    "Text",
    "Int",
    "Bool",
    "Float32",
    "Float64",
    "OptionalValue",
    "field_value",
    "FormError",
    "InvalidArgument",
    "IOFailure",
    "EncodingFailure",
    "FormClosed",
    "FormyWarning",
    "config_warnings",
    "escape_quotes",
]

from .exceptions import EncodingFailure, FormClosed, FormError, InvalidArgument, IOFailure
from .utils import FormyWarning, config_warnings, escape_quotes
from .values import Bool, FieldValue, Float32, Float64, Int, OptionalValue, Text, field_value
from .framing import MultipartWriter, PartWriter
from .sniff import detect
from .encoder import EncoderState, FormEncoder, encode_form

from .__version__ import __title__, __version__, __description__
