"""Detect video-conference links embedded in session room text."""
import re
from dataclasses import dataclass
from typing import List, Optional

ZOOM = 'zoom'
GOOGLE_MEET = 'google_meet'
MICROSOFT_TEAMS = 'microsoft_teams'
WEBEX = 'webex'

_PATTERNS = [
    (ZOOM, re.compile(r'https?://[\w\-.]*zoom\.us/[js]/(\d+)(?:\?pwd=([A-Za-z0-9.]+))?', re.I)),
    (GOOGLE_MEET, re.compile(r'https?://meet\.google\.com/([\w\-]+)', re.I)),
    (MICROSOFT_TEAMS, re.compile(r'https?://teams\.microsoft\.com/l/meetup-join/[\w%\-.]+', re.I)),
    (WEBEX, re.compile(r'https?://[\w\-.]*webex\.com/[\w\-./?=&]+', re.I)),
]

@dataclass(frozen=True)
class ConferenceLink:
    """A conference link found in free text."""
    kind: str
    url: str
    meeting_id: Optional[str] = None
    password: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'kind': self.kind,
            'url': self.url,
            'meeting_id': self.meeting_id,
            'password': self.password
        }

def detect_links(text: Optional[str]) -> List[ConferenceLink]:
    """Return every conference link in text, in order of appearance."""
    if not text:
        return []

    found = []
    for kind, pattern in _PATTERNS:
        for match in pattern.finditer(text):
            groups = match.groups()
            found.append((match.start(), ConferenceLink(
                kind=kind,
                url=match.group(0),
                meeting_id=groups[0] if groups else None,
                password=groups[1] if len(groups) > 1 else None
            )))

    return [link for _, link in sorted(found, key=lambda item: item[0])]
