"""Platform detection by URL substring matching."""

from enum import Enum


class Platform(str, Enum):
    """Source platforms the relay knows how to download from."""

    YOUTUBE = "youtube"
    SPOTIFY = "spotify"
    DEEZER = "deezer"
    SOUNDCLOUD = "soundcloud"
    ADULT = "adult"
    DIRECT = "direct"


# Checked in order; first match wins.
_PLATFORM_MARKERS = (
    (Platform.YOUTUBE, ("youtube.com", "youtu.be")),
    (Platform.SPOTIFY, ("spotify.com",)),
    (Platform.DEEZER, ("deezer.com",)),
    (Platform.SOUNDCLOUD, ("soundcloud.com",)),
    (Platform.ADULT, ("pornhub.com", "redtube.com", "xvideos.com")),
)

# Platforms whose yt-dlp output is converted to mp3
AUDIO_PLATFORMS = frozenset({Platform.SPOTIFY, Platform.DEEZER, Platform.SOUNDCLOUD})


def detect_platform(url: str) -> Platform:
    """Return the platform a URL belongs to, ``Platform.DIRECT`` if unknown."""
    url_lower = url.lower()
    for platform, markers in _PLATFORM_MARKERS:
        if any(marker in url_lower for marker in markers):
            return platform
    return Platform.DIRECT
