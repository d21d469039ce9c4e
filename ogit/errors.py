"""Failures raised while reading or decoding stored objects.

Filesystem problems are not wrapped: they surface as the ``OSError`` raised by
the underlying call.
"""


class ObjectError(Exception):
    def __init__(self, message, oid=None):
        super().__init__(message)
        self.message = message
        self.oid = oid

    def __str__(self):
        # the oid may only become known after the error was raised
        if self.oid is not None and self.oid not in self.message:
            return f'{self.message} (object {self.oid})'
        return self.message


class ObjectNotFound(ObjectError):
    def __init__(self, oid):
        super().__init__(f'object {oid} not found', oid)


class UnsupportedObjectType(ObjectError):
    """Unknown object header, or an object of another kind than requested."""

    def __init__(self, actual, expected=None, oid=None):
        if expected is None:
            message = f'unsupported object type {actual!r}'
        else:
            message = f'expected {expected}, got {actual}'
        super().__init__(message, oid)
        self.actual = actual
        self.expected = expected


class UnknownTreeMode(ObjectError):
    def __init__(self, mode, oid=None):
        super().__init__(f'unknown tree entry mode {mode!r}', oid)
        self.mode = mode


class CorruptObject(ObjectError):
    pass
