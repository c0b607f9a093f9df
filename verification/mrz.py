"""
Structural checks for Machine-Readable Zone lines.

Only the layout and the character class of each line are verified. ICAO 9303
check digits are NOT computed, so a well-typed MRZ with wrong check digits
still passes.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from config import MRZ_CHARSET_REGEX, TD1_LINE_LENGTH, TD3_LINE_LENGTH


class MrzFormat(str, Enum):
    TD1 = "TD1"
    TD3 = "TD3"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class MrzVerdict:
    format: MrzFormat
    passed: bool
    # False when the lines could not be checked and the verdict fails open
    verified: bool
    reason: str

    @classmethod
    def unverifiable(cls, reason: str) -> "MrzVerdict":
        return cls(format=MrzFormat.UNCLASSIFIED, passed=True, verified=False, reason=reason)


_MRZ_CHARSET = re.compile(MRZ_CHARSET_REGEX)


def classify_mrz(line1: str, line2: str, line3: Optional[str] = None) -> MrzFormat:
    """Classify MRZ lines by length; a third line is ignored for TD-3"""
    if len(line1) == TD3_LINE_LENGTH and len(line2) == TD3_LINE_LENGTH:
        return MrzFormat.TD3
    if (
        line3
        and len(line1) == TD1_LINE_LENGTH
        and len(line2) == TD1_LINE_LENGTH
        and len(line3) == TD1_LINE_LENGTH
    ):
        return MrzFormat.TD1
    return MrzFormat.UNCLASSIFIED


def check_mrz_structure(line1: str, line2: str, line3: Optional[str] = None) -> MrzVerdict:
    """
    Check MRZ lines against the TD-1 / TD-3 layout.

    Lines that match neither layout cannot be judged and pass unverified.
    """
    lines = [line1, line2] + ([line3] if line3 is not None else [])
    if not all(isinstance(line, str) for line in lines):
        return MrzVerdict.unverifiable("MRZ lines are not text")

    mrz_format = classify_mrz(line1, line2, line3)
    if mrz_format is MrzFormat.UNCLASSIFIED:
        return MrzVerdict.unverifiable("MRZ layout not recognised")

    participating: List[str] = [line1, line2]
    if mrz_format is MrzFormat.TD1:
        participating.append(line3)

    bad_lines = [
        index for index, line in enumerate(participating, start=1)
        if not _MRZ_CHARSET.fullmatch(line)
    ]
    if bad_lines:
        return MrzVerdict(
            format=mrz_format,
            passed=False,
            verified=True,
            reason=f"Invalid characters in MRZ line(s): {', '.join(map(str, bad_lines))}",
        )
    return MrzVerdict(format=mrz_format, passed=True, verified=True, reason=f"{mrz_format.value} layout valid")
