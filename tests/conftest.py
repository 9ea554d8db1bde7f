"""
Shared test fixtures.
"""

import pytest


def build_status_page(health="Good", temperature="35 degrees Celsius", tables_before=2):
    """
    Build an IP phone status page.

    The battery rows live in the third table; earlier tables hold
    unrelated device information, including decoy battery rows.
    """
    decoys = "".join(
        f"<table><tr><td>Table {i}</td></tr>"
        f"<tr><td>Battery health</td><td>Decoy{i}</td></tr></table>"
        for i in range(tables_before)
    )
    rows = ["<tr><td>Battery level</td><td>80%</td></tr>"]
    if health is not None:
        rows.append(f"<tr><td>Battery health</td><td>{health}</td></tr>")
    if temperature is not None:
        rows.append(f"<tr><td>Battery temperature: {temperature}</td></tr>")
    return (
        "<html><head><title>Cisco IP Phone</title></head><body>"
        f"{decoys}"
        f"<table>{''.join(rows)}</table>"
        "<table><tr><td>Footer</td></tr></table>"
        "</body></html>"
    )


class RecordingWriter:
    """Report sink that keeps rows in memory."""

    def __init__(self):
        self.all_rows = []
        self.bad_rows = []

    def write_all(self, result):
        self.all_rows.append(result)

    def write_bad(self, result):
        self.bad_rows.append(result)


@pytest.fixture
def status_page():
    """Factory for status page HTML."""
    return build_status_page


@pytest.fixture
def recording_writer():
    """In-memory report sink."""
    return RecordingWriter()
