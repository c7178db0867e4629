"""dBASE table protocol constants.

Single source of truth for on-disk layouts, marker bytes and reader defaults.
Keep this file stable. Parser, scanner and decoder must remain synchronized.
"""

# File header: [Type(1) | LastUpdate(3) | NumRecords(4) | FirstRecordOffset(2) |
#               RecordSize(2) | Reserved(15) | Flags(1) | CodePage(1) | Reserved(2) | Pad(1)]
HEADER_FMT = "<B3sIHH15sBB2sx"
HEADER_LEN = 32

# Field descriptor: [Name(11) | Type(1) | Displacement(4) | Length(1) | Decimals(1) |
#                    Flags(1) | NextValue(4) | Step(1) | Reserved(8)]
DESCRIPTOR_FMT = "<11scIBBBIB8s"
DESCRIPTOR_LEN = 32

# End of field descriptor table
DESCRIPTOR_TERMINATORS = frozenset({0x0D, 0x1A})

# Record liveness flag
DELETED_FLAG = 0x2A  # '*'; any other byte, normally ' ', is live

# Fixed-width binary field payloads
INTEGER_FMT = "<i"
INTEGER_LEN = 4
DOUBLE_FMT = "<d"
DOUBLE_LEN = 8

# Text fields are space padded on both ends
PAD_BYTE = b" "

# DATE payload is YYYYMMDD
DATE_LEN = 8

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

# Reader defaults
DEFAULT_BATCH_SIZE = 2048
DEFAULT_ENCODING = "latin-1"  # one byte, one code point: raw pass-through
