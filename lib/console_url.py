import urllib.parse
from typing import Optional

from .normalizer import UNKNOWN


def cloudtrail_event_url(region: str, event_id: str) -> Optional[str]:
    """Link to the CloudTrail console event-history page for one event, or None without a region."""
    if not region or region == UNKNOWN:
        return None
    region_q = urllib.parse.quote(region, safe='')
    base = f'https://{region_q}.console.aws.amazon.com/cloudtrailv2/home?region={region_q}'
    if not event_id or event_id == UNKNOWN:
        return f'{base}#/events'
    return f'{base}#/events/{urllib.parse.quote(event_id, safe="")}'
