class FormError(Exception):
    """Base exception for formy, every latched error is one of these."""

    def __init__(self, msg, field=None, *args, **kwargs):
        super().__init__(msg, *args, **kwargs)
        self.field = field


class InvalidArgument(FormError, ValueError):
    """A field name, file name, value or reader was empty or unsupported."""


class IOFailure(FormError, IOError):
    """Reading a source or writing to the sink failed."""


class EncodingFailure(FormError, ValueError):
    """A value could not be serialized to JSON."""


class FormClosed(FormError):
    """The form has already been closed."""
