from netdiag.core.dotted import extract_dotted, split_adapter_sections

from tests.conftest import IPCONFIG_ALL


def test_extract_value_with_continuation():
    lines = [
        "   Key . . . . . . . . . . . . . . . . . : 8.8.8.8",
        "                                        8.8.4.4",
    ]
    assert extract_dotted(lines, "Key") == ["8.8.8.8", "8.8.4.4"]


def test_missing_label_returns_single_empty_sentinel():
    lines = ["   Key . . . . . . . . . . . . . . . . . : 8.8.8.8"]
    assert extract_dotted(lines, "Missing") == [""]
    assert extract_dotted([], "Missing") == [""]


def test_present_but_empty_value():
    lines = ["   Connection-specific DNS Suffix  . : "]
    assert extract_dotted(lines, "Connection-specific DNS Suffix") == [""]


def test_scan_stops_at_next_label():
    lines = IPCONFIG_ALL.splitlines()
    assert extract_dotted(lines, "DNS Servers") == ["10.0.0.2", "8.8.8.8"]
    assert extract_dotted(lines, "Subnet Mask") == ["255.255.255.0"]


def test_first_occurrence_wins():
    lines = IPCONFIG_ALL.splitlines()
    assert extract_dotted(lines, "Connection-specific DNS Suffix") == ["corp.example"]


def test_split_adapter_sections():
    sections = split_adapter_sections(IPCONFIG_ALL)
    assert list(sections) == ["", "Ethernet", "Wi-Fi"]
    assert any("Host Name" in line for line in sections[""])
    assert any("10.0.0.5" in line for line in sections["Ethernet"])
    assert not any("10.0.0.5" in line for line in sections["Wi-Fi"])
