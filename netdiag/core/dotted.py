"""
Parsing of fixed-column "dotted" adapter listings (``ipconfig /all``).

A dotted field looks like::

       DNS Servers . . . . . . . . . . . : 192.168.1.1
                                           8.8.8.8

The value column is fixed; additional values for the same label sit on the
following lines with nothing but blanks in front of that column.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List

from netdiag.config import DOTTED_VALUE_COLUMN

logger = logging.getLogger(__name__)

# "Ethernet adapter Ethernet0:", "Wireless LAN adapter Wi-Fi:", "Unknown adapter Local Area Connection:"
_ADAPTER_HEADER = re.compile(r"^\S[^\r\n]*? adapter (?P<name>[^\r\n]*?):?[ \t\r]*$", re.MULTILINE)


def extract_dotted(lines: Iterable[str], label: str, column: int = DOTTED_VALUE_COLUMN) -> List[str]:
    """Return the values recorded under *label*, in order.

    Returns ``[""]`` when the label does not occur, so callers can tell
    "absent" apart from "present with values" by looking at the first item.
    """
    leader = re.compile(r"^\s*" + re.escape(label) + r"[ .]*:(?P<value>.*)$")
    values: List[str] = []
    found = False

    for line in lines:
        line = line.rstrip("\r\n")
        if not found:
            m = leader.match(line)
            if m:
                found = True
                values.append(m.group("value").strip())
                if m.start("value") + 1 != column:
                    logger.debug("Dotted field %r has its value at column %d, expected %d",
                                 label, m.start("value") + 1, column)
            continue
        if len(line) > column and not line[:column].strip():
            values.append(line[column:].strip())
        else:
            break

    return values if found else [""]


def split_adapter_sections(text: str) -> Dict[str, List[str]]:
    """Split ``ipconfig /all`` output into ``{adapter name: section lines}``.

    The preamble before the first adapter (``Windows IP Configuration``) is
    stored under the empty key.
    """
    sections: Dict[str, List[str]] = {}
    headers = list(_ADAPTER_HEADER.finditer(text))

    preamble_end = headers[0].start() if headers else len(text)
    sections[""] = text[:preamble_end].splitlines()

    for i, m in enumerate(headers):
        end = headers[i + 1].start() if i + 1 < len(headers) else len(text)
        sections[m.group("name").strip()] = text[m.end():end].splitlines()

    return sections
