import re

_ISO_DURATION = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")


def parse_iso_duration(value: str | None) -> int:
    """Parse an ISO-8601 duration such as ``PT1H2M3S`` into seconds.

    Missing or unparseable values yield 0.
    """
    if not value:
        return 0
    match = _ISO_DURATION.match(value.strip())
    if not match:
        return 0
    days, hours, minutes, seconds = (int(part or 0) for part in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds
