# src/scsi_tool/models.py

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Dict, Any, List


class ResponseCode(IntEnum):
    FIXED_CURRENT = 0x70
    FIXED_DEFERRED = 0x71
    DESCRIPTOR_CURRENT = 0x72
    DESCRIPTOR_DEFERRED = 0x73
    VENDOR_SPECIFIC = 0x7F


class SenseKey(IntEnum):
    NO_SENSE = 0x0
    RECOVERED_ERROR = 0x1
    NOT_READY = 0x2
    MEDIUM_ERROR = 0x3
    HARDWARE_ERROR = 0x4
    ILLEGAL_REQUEST = 0x5
    UNIT_ATTENTION = 0x6
    DATA_PROTECT = 0x7
    BLANK_CHECK = 0x8
    VENDOR_SPECIFIC = 0x9
    COPY_ABORTED = 0xA
    ABORTED_COMMAND = 0xB
    EQUAL = 0xC
    VOLUME_OVERFLOW = 0xD
    MISCOMPARE = 0xE
    COMPLETED = 0xF


class SenseCategory(IntEnum):
    NOT_READY = 2
    MEDIUM_HARD = 3
    ILLEGAL_REQ = 5
    UNIT_ATTENTION = 6
    INVALID_OP = 9
    ABORTED_COMMAND = 11
    NO_SENSE = 20
    RECOVERED = 21
    SENSE = 98


class DescriptorType(IntEnum):
    INFORMATION = 0x0
    COMMAND_SPECIFIC = 0x1
    SENSE_KEY_SPECIFIC = 0x2
    FIELD_REPLACEABLE_UNIT = 0x3
    STREAM_COMMANDS = 0x4
    BLOCK_COMMANDS = 0x5
    OSD_OBJECT_IDENTIFICATION = 0x6
    OSD_RESPONSE_INTEGRITY = 0x7
    OSD_ATTRIBUTE_IDENTIFICATION = 0x8
    ATA_STATUS_RETURN = 0x9
    ANOTHER_PROGRESS_INDICATION = 0xA
    USER_DATA_SEGMENT_REFERRAL = 0xB
    FORWARDED_SENSE_DATA = 0xC
    DIRECT_ACCESS_BLOCK_DEVICE = 0xD
    DEVICE_DESIGNATION = 0xE
    MICROCODE_ACTIVATION = 0xF


class DesignatorType(IntEnum):
    VENDOR_SPECIFIC = 0x0
    T10_VENDOR_ID = 0x1
    EUI_64 = 0x2
    NAA = 0x3
    RELATIVE_TARGET_PORT = 0x4
    TARGET_PORT_GROUP = 0x5
    LOGICAL_UNIT_GROUP = 0x6
    MD5_LOGICAL_UNIT_ID = 0x7
    SCSI_NAME_STRING = 0x8
    PROTOCOL_SPECIFIC_PORT_ID = 0x9
    UUID = 0xA


class CodeSet(IntEnum):
    RESERVED = 0x0
    BINARY = 0x1
    ASCII = 0x2
    UTF8 = 0x3


class Association(IntEnum):
    LOGICAL_UNIT = 0x0
    TARGET_PORT = 0x1
    TARGET_DEVICE = 0x2
    RESERVED = 0x3


class TransportProtocol(IntEnum):
    FCP = 0x0
    SPI = 0x1
    SSA = 0x2
    SBP = 0x3
    SRP = 0x4
    ISCSI = 0x5
    SAS = 0x6
    ADT = 0x7
    ATA = 0x8
    UAS = 0x9
    SOP = 0xA
    PCIE = 0xB
    NONE = 0xF


class IterStatus(Enum):
    OK = "ok"
    END = "end"
    MALFORMED = "malformed"


class DecodeIssue(Enum):
    STRUCTURALLY_INVALID = "structurally invalid"
    SEMANTIC_MISMATCH = "semantic mismatch"
    TRUNCATED = "truncated"
    MALFORMED = "malformed"


@dataclass
class SenseHeader:
    response_code: int
    sense_key: int = 0
    asc: int = 0
    ascq: int = 0
    additional_length: int = 0

    @property
    def descriptor_format(self) -> bool:
        return self.response_code in (
            ResponseCode.DESCRIPTOR_CURRENT,
            ResponseCode.DESCRIPTOR_DEFERRED,
        )

    @property
    def vendor_specific(self) -> bool:
        return self.response_code == ResponseCode.VENDOR_SPECIFIC

    @property
    def deferred(self) -> bool:
        return self.response_code in (
            ResponseCode.FIXED_DEFERRED,
            ResponseCode.DESCRIPTOR_DEFERRED,
        )

    def to_dict(self) -> Dict[str, Any]:
        return vars(self).copy()


@dataclass
class Descriptor:
    """One TLV unit of descriptor format sense data."""

    dtype: int
    # None means byte 1 itself lies outside the descriptor list
    add_len: Optional[int]
    raw: bytes = b""

    @property
    def short(self) -> bool:
        return self.add_len is None

    @property
    def length(self) -> int:
        return (self.add_len or 0) + 2


@dataclass
class DesignatorDescriptor:
    protocol_id: int
    code_set: int
    piv: bool
    association: int
    designator_type: int
    length: int
    designator: bytes = b""

    @classmethod
    def from_bytes(cls, data: bytes) -> "DesignatorDescriptor":
        """Build from a 4-byte header plus payload; payload is clamped to what is present."""
        if len(data) < 4:
            raise ValueError(f"designation descriptor too short: {len(data)} bytes")
        length = data[3]
        return cls(
            protocol_id=(data[0] >> 4) & 0xF,
            code_set=data[0] & 0xF,
            piv=bool(data[1] & 0x80),
            association=(data[1] >> 4) & 0x3,
            designator_type=data[1] & 0xF,
            length=length,
            designator=bytes(data[4 : 4 + length]),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = vars(self).copy()
        d["designator"] = self.designator.hex()
        return d


@dataclass
class RecursionGuard:
    """Bounds nested forwarded sense data decoding."""

    max_depth: int = 4
    depth: int = 0
    issues: List[DecodeIssue] = field(default_factory=list)

    def enter(self) -> bool:
        if self.depth >= self.max_depth:
            self.issues.append(DecodeIssue.MALFORMED)
            return False
        self.depth += 1
        return True

    def leave(self) -> None:
        if self.depth > 0:
            self.depth -= 1
