'''
We are implementing fields to handle CRC calculation.
'''
from zlib import crc32

from .. import fields
from ..exceptions import ChecksumMismatchException


class CRCField(fields.StructField):
    """standard CRC methods with pre and post conditioning, as defined by ISO 3309 [ISO-3309]
    or ITU-T V.42 [ITU-V42]. The CRC polynomial employed is

      x^32+x^26+x^23+x^22+x^16+x^12+x^11+x^10+x^8+x^7+x^5+x^4+x^2+x+1

    The 32-bit CRC register is initialized to all 1's, and then the data from each byte is processed
    from the least significant bit (1) to the most significant bit (128). After all the data bytes are processed,
    the CRC register is inverted (its ones complement is taken). This value is transmitted (stored in the file)
    MSB first.

    The fields it covers are indicated by name and must precede it in the chunk: the value
    is always calculated from them, the one read while unpacking is only checked.

    See <https://www.w3.org/TR/PNG-Structure.html#CRC-algorithm>.
    """

    def __init__(self, fields, *args, **kwargs):
        super().__init__('I', *args, **kwargs)
        self.fields = fields

    def calculate(self):
        value = b''.join([getattr(self.father, _).raw for _ in self.fields])

        return crc32(value)

    def _get_value(self):
        # without a father there is nothing to calculate from
        if self.father is None:
            return self._value

        return self.calculate()

    def unpack(self, stream):
        super().unpack(stream)

        stored, expected = self._value, self.calculate()
        if stored != expected:
            self.logger.debug('crc mismatch over fields %s' % ', '.join(self.fields))
            raise ChecksumMismatchException(
                message=f'crc 0x{stored:08x} does not match the calculated 0x{expected:08x}')
