# src/scsi_tool/names.py
"""Numeric code to descriptive string lookups.

The decoders never hard-code English names; they ask a resolver. The
default resolver below carries the SPC tables as plain data, and callers may
inject their own (for example one backed by a fuller ASC/ASCQ catalog).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple


SENSE_KEY_DESC: List[str] = [
    "No Sense",
    "Recovered Error",
    "Not Ready",
    "Medium Error",
    "Hardware Error",
    "Illegal Request",
    "Unit Attention",
    "Data Protect",
    "Blank Check",
    "Vendor specific",
    "Copy Aborted",
    "Aborted Command",
    "Equal",
    "Volume Overflow",
    "Miscompare",
    "Completed",
]

TRANSPORT_PROTOCOLS: List[str] = [
    "Fibre Channel Protocol for SCSI (FCP-5)",
    "SCSI Parallel Interface (SPI-5)",
    "Serial Storage Architecture SCSI-3 Protocol (SSA-S3P)",
    "Serial Bus Protocol for IEEE 1394 (SBP-3)",
    "SCSI RDMA Protocol (SRP)",
    "Internet SCSI (iSCSI)",
    "Serial Attached SCSI Protocol (SPL-4)",
    "Automation/Drive Interface Transport (ADT-2)",
    "AT Attachment Interface (ACS-2)",
    "USB Attached SCSI (UAS-2)",
    "SCSI over PCI Express (SOP)",
    "PCIe",
    "0xc",
    "0xd",
    "0xe",
    "No specific protocol",
]

DESIGNATOR_TYPES: List[str] = [
    "vendor specific [0x0]",
    "T10 vendor identification",
    "EUI-64 based",
    "NAA",
    "Relative target port",
    "Target port group",
    "Logical unit group",
    "MD5 logical unit identifier",
    "SCSI name string",
    "Protocol specific port identifier",
    "UUID identifier",
    "[0xb]",
    "[0xc]",
    "[0xd]",
    "[0xe]",
    "[0xf]",
]

DESIGNATOR_ASSOCIATIONS: List[str] = [
    "Addressed logical unit",
    "Target port",
    "Target device that contains addressed lu",
    "Reserved [0x3]",
]

CODE_SETS: List[str] = [
    "Reserved [0x0]",
    "Binary",
    "ASCII",
    "UTF-8",
    "Reserved [0x4]",
    "Reserved [0x5]",
    "Reserved [0x6]",
    "Reserved [0x7]",
    "Reserved [0x8]",
    "Reserved [0x9]",
    "Reserved [0xa]",
    "Reserved [0xb]",
    "Reserved [0xc]",
    "Reserved [0xd]",
    "Reserved [0xe]",
    "Reserved [0xf]",
]

PERIPHERAL_DEVICE_TYPES: List[str] = [
    "disk",
    "tape",
    "printer",
    "processor",
    "write once optical disk",
    "cd/dvd",
    "scanner",
    "optical memory device",
    "medium changer",
    "communications",
    "graphics [0xa]",
    "graphics [0xb]",
    "storage array controller",
    "enclosure services device",
    "simplified direct access device",
    "optical card reader/writer device",
    "bridge controller commands",
    "object based storage",
    "automation/driver interface",
    "security manager device",
    "host managed zoned block device",
    "0x15",
    "0x16",
    "0x17",
    "0x18",
    "0x19",
    "0x1a",
    "0x1b",
    "0x1c",
    "0x1d",
    "well known logical unit",
    "unknown or no device type",
]

SCSI_STATUS: Dict[int, str] = {
    0x0: "Good",
    0x2: "Check Condition",
    0x4: "Condition Met",
    0x8: "Busy",
    0x10: "Intermediate (obsolete)",
    0x14: "Intermediate-Condition Met (obsolete)",
    0x18: "Reservation Conflict",
    0x22: "Command terminated (obsolete)",
    0x28: "Task Set Full",
    0x30: "ACA Active",
    0x40: "Task Aborted",
}

TPGS_STATES: Dict[int, str] = {
    0x0: "active/optimized",
    0x1: "active/non optimized",
    0x2: "standby",
    0x3: "unavailable",
    0xE: "offline",
    0xF: "transitioning between states",
}

# (asc, ascq) -> text. A working subset of the SPC catalog.
ASC_ASCQ: Dict[Tuple[int, int], str] = {
    (0x00, 0x00): "No additional sense information",
    (0x00, 0x01): "Filemark detected",
    (0x00, 0x02): "End-of-partition/medium detected",
    (0x00, 0x04): "Beginning-of-partition/medium detected",
    (0x00, 0x05): "End-of-data detected",
    (0x00, 0x16): "Operation in progress",
    (0x00, 0x1D): "ATA pass through information available",
    (0x01, 0x00): "No index/sector signal",
    (0x02, 0x00): "No seek complete",
    (0x03, 0x00): "Peripheral device write fault",
    (0x03, 0x02): "Excessive write errors",
    (0x04, 0x00): "Logical unit not ready, cause not reportable",
    (0x04, 0x01): "Logical unit is in process of becoming ready",
    (0x04, 0x02): "Logical unit not ready, initializing command required",
    (0x04, 0x03): "Logical unit not ready, manual intervention required",
    (0x04, 0x04): "Logical unit not ready, format in progress",
    (0x04, 0x07): "Logical unit not ready, operation in progress",
    (0x04, 0x09): "Logical unit not ready, self-test in progress",
    (0x04, 0x1B): "Logical unit not ready, sanitize in progress",
    (0x05, 0x00): "Logical unit does not respond to selection",
    (0x08, 0x00): "Logical unit communication failure",
    (0x09, 0x05): "Vibration induced tracking error",
    (0x0C, 0x00): "Write error",
    (0x0C, 0x02): "Write error - auto reallocation failed",
    (0x11, 0x00): "Unrecovered read error",
    (0x11, 0x04): "Unrecovered read error - auto reallocate failed",
    (0x14, 0x01): "Record not found",
    (0x15, 0x00): "Random positioning error",
    (0x17, 0x01): "Recovered data with retries",
    (0x18, 0x00): "Recovered data with error correction applied",
    (0x1A, 0x00): "Parameter list length error",
    (0x1D, 0x00): "Miscompare during verify operation",
    (0x20, 0x00): "Invalid command operation code",
    (0x21, 0x00): "Logical block address out of range",
    (0x24, 0x00): "Invalid field in cdb",
    (0x25, 0x00): "Logical unit not supported",
    (0x26, 0x00): "Invalid field in parameter list",
    (0x26, 0x01): "Parameter not supported",
    (0x26, 0x02): "Parameter value invalid",
    (0x27, 0x00): "Write protected",
    (0x28, 0x00): "Not ready to ready change, medium may have changed",
    (0x29, 0x00): "Power on, reset, or bus device reset occurred",
    (0x29, 0x01): "Power on occurred",
    (0x29, 0x02): "SCSI bus reset occurred",
    (0x29, 0x03): "Bus device reset function occurred",
    (0x2A, 0x01): "Mode parameters changed",
    (0x2A, 0x09): "Capacity data has changed",
    (0x2C, 0x00): "Command sequence error",
    (0x2F, 0x00): "Commands cleared by another initiator",
    (0x30, 0x00): "Incompatible medium installed",
    (0x31, 0x00): "Medium format corrupted",
    (0x32, 0x00): "No defect spare location available",
    (0x35, 0x00): "Enclosure services failure",
    (0x3A, 0x00): "Medium not present",
    (0x3E, 0x00): "Logical unit has not self-configured yet",
    (0x3F, 0x00): "Target operating conditions have changed",
    (0x3F, 0x01): "Microcode has been changed",
    (0x3F, 0x0E): "Reported luns data has changed",
    (0x3F, 0x1A): "Subsidiary binding changed",
    (0x44, 0x00): "Internal target failure",
    (0x47, 0x00): "Scsi parity error",
    (0x48, 0x00): "Initiator detected error message received",
    (0x49, 0x00): "Invalid message error",
    (0x4B, 0x00): "Data phase error",
    (0x4E, 0x00): "Overlapped commands attempted",
    (0x53, 0x02): "Medium removal prevented",
    (0x55, 0x03): "Insufficient resources",
    (0x5D, 0x00): "Failure prediction threshold exceeded",
    (0x5D, 0xFF): "Failure prediction threshold exceeded (false)",
    (0x5E, 0x00): "Low power condition on",
    (0x65, 0x00): "Voltage fault",
}

# (asc, ascq_min, ascq_max, fmt) entries where the ASCQ is a parameter.
ASC_ASCQ_RANGES: List[Tuple[int, int, int, str]] = [
    (0x40, 0x01, 0x7F, "Ram failure [0x%x]"),
    (0x40, 0x80, 0xFF, "Diagnostic failure on component [0x%x]"),
    (0x41, 0x00, 0xFF, "Data path failure [0x%x]"),
    (0x42, 0x00, 0xFF, "Power-on or self-test failure [0x%x]"),
    (0x4D, 0x00, 0xFF, "Tagged overlapped commands (task tag 0x%x)"),
    (0x70, 0x00, 0xFF, "Decompression exception short algorithm id of 0x%x"),
]


def _from_list(table: List[str], value: int, bad: str) -> str:
    if 0 <= value < len(table):
        return table[value]
    return bad


class AbstractNameResolver(ABC):
    @abstractmethod
    def sense_key(self, sense_key: int) -> str:
        """Name of a 4-bit sense key."""
        pass

    @abstractmethod
    def asc_ascq(self, asc: int, ascq: int) -> str:
        """Text for an additional sense code and qualifier pair."""
        pass

    @abstractmethod
    def scsi_status(self, status: int) -> str:
        pass

    @abstractmethod
    def transport_protocol(self, proto_id: int) -> str:
        pass

    @abstractmethod
    def designator_type(self, desig_type: int) -> Optional[str]:
        pass

    @abstractmethod
    def designator_association(self, assoc: int) -> str:
        pass

    @abstractmethod
    def code_set(self, code_set: int) -> Optional[str]:
        pass

    @abstractmethod
    def peripheral_device_type(self, pdt: int) -> str:
        pass

    @abstractmethod
    def tpgs_state(self, state: int) -> str:
        pass


class DefaultNameResolver(AbstractNameResolver):
    def sense_key(self, sense_key: int) -> str:
        if 0 <= sense_key < 16:
            return SENSE_KEY_DESC[sense_key]
        return f"invalid value: 0x{sense_key:x}"

    def asc_ascq(self, asc: int, ascq: int) -> str:
        for r_asc, lo, hi, fmt in ASC_ASCQ_RANGES:
            if r_asc == asc and lo <= ascq <= hi:
                return "Additional sense: " + (fmt % ascq)
        text = ASC_ASCQ.get((asc, ascq))
        if text is not None:
            return f"Additional sense: {text}"
        if asc >= 0x80:
            return f"vendor specific ASC={asc:2x}, ASCQ={ascq:2x} (hex)"
        if ascq >= 0x80:
            return f"ASC={asc:2x}, vendor specific qualification ASCQ={ascq:2x} (hex)"
        return f"ASC={asc:2x}, ASCQ={ascq:2x} (hex)"

    def scsi_status(self, status: int) -> str:
        return SCSI_STATUS.get(status & 0x7E, "Unknown status")

    def transport_protocol(self, proto_id: int) -> str:
        return _from_list(TRANSPORT_PROTOCOLS, proto_id, "bad tpi")

    def designator_type(self, desig_type: int) -> Optional[str]:
        if 0 <= desig_type < len(DESIGNATOR_TYPES):
            return DESIGNATOR_TYPES[desig_type]
        return None

    def designator_association(self, assoc: int) -> str:
        return _from_list(DESIGNATOR_ASSOCIATIONS, assoc, "Reserved [0x3]")

    def code_set(self, code_set: int) -> Optional[str]:
        if 0 <= code_set < len(CODE_SETS):
            return CODE_SETS[code_set]
        return None

    def peripheral_device_type(self, pdt: int) -> str:
        return _from_list(PERIPHERAL_DEVICE_TYPES, pdt, "bad pdt")

    def tpgs_state(self, state: int) -> str:
        text = TPGS_STATES.get(state)
        if text is None:
            return f"unknown: 0x{state:x}"
        return text


DEFAULT_RESOLVER = DefaultNameResolver()
