# https://www.sqlite.org/fileformat.html#the_database_header
DB_FILE_HEADER_SIZE = 100
SQLITE_MAGIC = b"SQLite format 3\x00"

MIN_PAGE_SIZE = 512
MAX_PAGE_SIZE = 32768
# a raw page size of 1 is how 65536 is stored in the 2 header bytes
LARGEST_PAGE_SIZE = 65536

MAX_EMBEDDED_PAYLOAD_FRACTION = 64
MIN_EMBEDDED_PAYLOAD_FRACTION = 32
LEAF_PAYLOAD_FRACTION = 32

TEXT_ENCODING_UTF8 = 1
TEXT_ENCODING_UTF16LE = 2
TEXT_ENCODING_UTF16BE = 3

# https://www.sqlite.org/fileformat.html#b_tree_pages
INTERIOR_PAGE_HEADER_SIZE = 12
LEAF_PAGE_HEADER_SIZE = 8
CELL_POINTER_SIZE = 2
CHILD_POINTER_SIZE = 4

LAST_SEVEN_BITS_MASK = 0b_0111_1111
CONTINUATION_BIT = 0b_1000_0000
MAX_VARINT_SIZE = 9

# https://www.sqlite.org/fileformat.html#storage_of_the_sql_database_schema
SCHEMA_TYPE_COLUMN = 0
SCHEMA_NAME_COLUMN = 1
SCHEMA_TABLE_NAME_COLUMN = 2
SCHEMA_ROOTPAGE_COLUMN = 3
SCHEMA_SQL_COLUMN = 4
SCHEMA_TABLE_TYPE = "table"
INTERNAL_TABLE_PREFIX = "sqlite_"
