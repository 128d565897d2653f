"""
Class file version numbers and the JDK release each major version belongs to.
"""

from dataclasses import dataclass
from enum import Enum

from .errors import ClassFileVersionError


class SdkVersion(Enum):
    """JDK releases, valued by the class file major version they emit."""
    JDK_1_1 = 45
    JDK_1_2 = 46
    JDK_1_3 = 47
    JDK_1_4 = 48
    JDK_1_5 = 49
    JDK_6 = 50
    JDK_7 = 51
    JDK_8 = 52
    JDK_9 = 53
    JDK_10 = 54
    JDK_11 = 55
    JDK_12 = 56
    JDK_13 = 57
    JDK_14 = 58
    JDK_15 = 59
    JDK_16 = 60
    JDK_17 = 61
    JDK_18 = 62
    JDK_19 = 63
    JDK_20 = 64
    JDK_21 = 65
    JDK_22 = 66

    def __str__(self) -> str:
        return "Jdk" + self.name[len("JDK_"):]

    @classmethod
    def from_major(cls, major: int, minor: int = 0) -> "SdkVersion":
        """Look up the release for a major version. The minor version is only used in the error."""
        try:
            return cls(major)
        except ValueError:
            raise ClassFileVersionError(major, minor) from None


@dataclass(frozen=True)
class ClassFileVersion:
    """A (major, minor) version pair, checked against the known releases when created."""
    major: int
    minor: int = 0

    def __post_init__(self):
        SdkVersion.from_major(self.major, self.minor)

    @property
    def sdk_version(self) -> SdkVersion:
        return SdkVersion(self.major)

    def __str__(self) -> str:
        return f"{self.sdk_version} ({self.major}.{self.minor})"
