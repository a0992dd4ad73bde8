# src/scsi_tool/help_text.py

from ._version import get_version as get_local_version


def print_help():
    """
    Prints the help text (Man page style) with dynamic versioning.
    Includes a standard Unix-style header and footer.
    """
    tool_ver = get_local_version()

    # Header: COMMAND(Section) | Title | Source/Version
    header = "SCSI-DECODE(1)                      User Commands                      SCSI-DECODE(1)"

    footer = f"\nVERSION\n       v{tool_ver}"

    help_text = rf"""{header}

NAME
       scsi-decode - decode SCSI sense data and device identification pages

SYNOPSIS
       scsi-decode [-h] [-b FN | -f FN] [--vpd] [--nospace] [--raw] [-v] [-V]
                   [H1 H2 ...]

DESCRIPTION
       Decodes SCSI sense data given as hexadecimal bytes. Both fixed
       format (response codes 0x70 and 0x71) and descriptor format (0x72
       and 0x73) are understood, including forwarded sense data nested
       inside a descriptor. With --vpd the bytes are decoded as a Device
       Identification VPD page (0x83) instead.

       Malformed or truncated input is never rejected: whatever can be
       interpreted is shown and the rest is dumped in hex.

OPTIONS
       -h, --help
              Show this help message and exit.

       -b FN, --binary FN
              Read the bytes from binary file FN.

       -f FN, --file FN
              Read hexadecimal bytes from text file FN ('-' for stdin).
              Bytes are separated by whitespace or commas; text after '#'
              on a line is ignored.

       --vpd
              Decode the bytes as a Device Identification VPD page,
              including its 4 byte header.

       --nospace
              Hex bytes are given as one string without separators
              (e.g. 7000050000000000).

       --raw
              Also print the sense data bytes in hex after decoding.

       -v, --verbose
              Increase verbosity; debug logging goes to stderr.

       -V, --version
              Print the version and exit.

ENVIRONMENT
       SCSI_TOOL_MAX_DEPTH
              Deepest level of forwarded sense data that is decoded
              (default 4).

       SCSI_TOOL_CAPACITY
              Maximum number of characters of output.

       SCSI_TOOL_BYTES_PER_LINE
              Bytes per line in hex dumps (default 16).

       SCSI_TOOL_ERROR_LOG
              Where to append the traceback of an unexpected error.

EXAMPLES
       scsi-decode 70 00 05 00 00 00 00 0a 00 00 00 00 24 00
              Decode fixed format sense data for an Illegal Request.

       scsi-decode --vpd -f page83.txt
              Decode a saved Device Identification VPD page.
"""

    print(help_text + footer)
