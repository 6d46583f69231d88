#!/usr/bin/env python
from typing import Dict
from typing import Optional

nsmap: Dict[str, str] = {
    "D": "DAV:",
    "C": "urn:ietf:params:xml:ns:caldav",
}

## getctag lives in the calendarserver.org namespace.  Nearly every
## server supports it, but it's only put on the wire when asked for.
nsmap_extra: Dict[str, str] = {
    **nsmap,
    "CS": "http://calendarserver.org/ns/",
}


def ns(prefix: str, tag: Optional[str] = None) -> str:
    name = "{%s}" % nsmap_extra[prefix]
    if tag is not None:
        name = "%s%s" % (name, tag)
    return name
