"""
Results platform adapters.

PLATFORM_ADAPTERS maps the ``platform`` value of a race entry to the adapter
that fetches its candidate rows.
"""

from .base import HttpPlatformAdapter, PlatformAdapter
from .mika import MikaTimingAdapter
from .mychiptime import MyChipTimeAdapter
from .myrace import MyRaceAdapter
from .nyrr import NYRRAdapter
from .raceroster import RaceRosterAdapter
from .rtrt import RTRTAdapter
from .runsignup import RunSignUpAdapter

PLATFORM_ADAPTERS: dict[str, PlatformAdapter] = {
    adapter.platform: adapter
    for adapter in (
        RunSignUpAdapter(),
        MikaTimingAdapter(),
        MyRaceAdapter(),
        NYRRAdapter(),
        RaceRosterAdapter(),
        MyChipTimeAdapter(),
        RTRTAdapter(),
    )
}

__all__ = [
    "PLATFORM_ADAPTERS",
    "PlatformAdapter",
    "HttpPlatformAdapter",
    "RunSignUpAdapter",
    "MikaTimingAdapter",
    "MyRaceAdapter",
    "NYRRAdapter",
    "RaceRosterAdapter",
    "MyChipTimeAdapter",
    "RTRTAdapter",
]
