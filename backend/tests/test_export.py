"""
Tests for CSV export of the walk history.
"""

from datetime import date

from walkpace.models.walk import WalkRecord
from walkpace.services.export import export_filename, walks_to_csv, walks_to_dataframe


HEADER = '"Date","Time","Route","Distance (km)","Duration (min)","Speed (km/h)","Terrain Factor"'


def make_walk(**overrides) -> WalkRecord:
    fields = dict(
        id=1,
        date="2024-01-01",
        time="08:00:00",
        route="A → B",
        speed=4.9,
        distance=1.23,
        duration=15,
        terrain=1.0,
    )
    fields.update(overrides)
    return WalkRecord(**fields)


class TestWalksToCsv:
    """Tests for walks_to_csv."""

    def test_single_walk(self):
        lines = walks_to_csv([make_walk()]).split("\n")

        assert lines == [
            HEADER,
            '"2024-01-01","08:00:00","A → B","1.23","15","4.9","1"',
        ]

    def test_numeric_precision(self):
        walk = make_walk(distance=2.3456, duration=27.6, speed=5.0987, terrain=0.8)

        row = walks_to_csv([walk]).split("\n")[1]

        assert row == '"2024-01-01","08:00:00","A → B","2.35","28","5.1","0.8"'

    def test_ties_round_up(self):
        walk = make_walk(distance=1.125, duration=12.5, speed=4.25)

        row = walks_to_csv([walk]).split("\n")[1]

        assert row == '"2024-01-01","08:00:00","A → B","1.13","13","4.3","1"'

    def test_rows_in_history_order(self):
        walks = [make_walk(id=1, route="first"), make_walk(id=2, route="second")]

        lines = walks_to_csv(walks).split("\n")

        assert len(lines) == 3
        assert '"first"' in lines[1]
        assert '"second"' in lines[2]

    def test_no_trailing_newline(self):
        assert not walks_to_csv([make_walk()]).endswith("\n")

    def test_empty_history_header_only(self):
        assert walks_to_csv([]) == HEADER

    def test_quotes_escaped(self):
        row = walks_to_csv([make_walk(route='The "Loop"')]).split("\n")[1]
        assert '"The ""Loop"""' in row

    def test_quoted_route_with_arrow(self):
        csv_text = walks_to_csv([make_walk(route='The "Loop" → B')])
        assert csv_text.split("\n")[1].startswith('"2024-01-01","08:00:00","The ""Loop"" → B",')


class TestExportHelpers:

    def test_dataframe_columns(self):
        df = walks_to_dataframe([make_walk()])
        assert list(df.columns)[0] == "Date"
        assert df.iloc[0]["Distance (km)"] == "1.23"

    def test_export_filename(self):
        assert export_filename(date(2024, 3, 9)) == "walking_data_2024-03-09.csv"
