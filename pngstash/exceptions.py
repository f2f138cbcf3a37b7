class PNGStashException(Exception):
    '''Base class to extend in order to throw exception in pngstash.

    It takes as first argument the chain of the layers that caused the
    exception: each layer appends its own name while the exception
    goes up, so the innermost field comes first.
    '''

    def __init__(self, chain=None, message=None):
        self.chain = chain if chain is not None else []
        self.message = message
        super().__init__(*([message] if message else []))

    def __str__(self):
        msg = self.message or self.__class__.__name__
        if self.chain:
            msg += ' (at %s)' % '.'.join(reversed([str(_) for _ in self.chain]))

        return msg


class UnpackException(PNGStashException):
    pass


class MalformedInputException(UnpackException):
    '''The raw data has not the shape it is supposed to have.'''
    pass


class TruncatedInputException(UnpackException):
    '''The stream ended before the field could be read completely.'''
    pass


class ChecksumMismatchException(UnpackException):
    pass


class MagicException(PNGStashException):
    pass


class BadSignatureException(MagicException):
    pass


class ChunkNotFoundException(PNGStashException):
    pass


class NotTextException(PNGStashException):
    pass


class InvalidChunkTypeException(PNGStashException):
    '''Raised when a chunk type is used somewhere a valid one is mandatory.'''
    pass
