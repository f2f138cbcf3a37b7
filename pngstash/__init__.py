"""
# pngstash: hide messages into PNG chunks.

A file format is described declaratively as a Chunk whose class attributes
are fields; each field knows its own binary representation.

Three basic operations are defined for the format and its sub components:

 1. unpack(): reading the binary data from a stream and build a high-level
    representation of that. The fields are read one after the other, each
    one starting where the previous ended.

 2. pack(): encode the high-level representation into binary data.

 3. relayout(): recalculate offset and size of each sub component, and
    any value derived from the others (like a CRC). Packing a chunk from
    the root implies a relayouting.

On top of that, pngstash.images.png describes the PNG container (signature
plus a sequence of length/type/data/crc chunks) and the operations needed
to append, find and remove chunks carrying a message.
"""
