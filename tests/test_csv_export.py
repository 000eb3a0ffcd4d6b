import unittest
from datetime import datetime, timezone

from luckydraw.models import DrawRecord, Participant
from luckydraw.transfer import (
    BOM,
    format_draw_records,
    format_participants,
    import_template,
    parse_participants,
)


class CsvExportTests(unittest.TestCase):
    def _record(self, draw_id, position, day, name):
        return DrawRecord(
            draw_id=draw_id,
            participant_id=f"id-{name}",
            participant_name=name,
            prize_name=f"prize-{position}",
            category_id="c1",
            position=position,
            lottery_date=datetime(2026, 4, day, tzinfo=timezone.utc),
        )

    def test_template_is_importable_header(self):
        template = import_template()
        self.assertEqual(template, BOM + '"Name","CategoryId"\n')
        parsed = parse_participants(template + "Ann,\n")
        self.assertEqual([row.name for row in parsed.valid_rows], ["Ann"])

    def test_records_sorted_newest_first_in_draw_order(self):
        records = [
            self._record("old", 0, 1, "Old"),
            self._record("new", 1, 2, "Second"),
            self._record("new", 0, 2, "First"),
        ]
        lines = format_draw_records(records)[len(BOM):].splitlines()
        self.assertEqual(
            lines[1:],
            [
                '"First","prize-0","2026-04-02T00:00:00+00:00","c1","id-First"',
                '"Second","prize-1","2026-04-02T00:00:00+00:00","c1","id-Second"',
                '"Old","prize-0","2026-04-01T00:00:00+00:00","c1","id-Old"',
            ],
        )

    def test_empty_export_still_has_header(self):
        content = format_draw_records([])
        self.assertEqual(
            content, BOM + '"WinnerName","PrizeName","DrawDate","CategoryId","ParticipantId"\n'
        )

    def test_reimport_keeps_inner_quotes_but_drops_edge_quotes(self):
        content = format_participants(
            [
                Participant(name='Say "hi" Bob', category_id="c1"),
                Participant(name='"Bob"', category_id="c1"),
            ]
        )
        self.assertIn('"""Bob"""', content)
        rows = parse_participants(content).valid_rows
        # quotes at either end of a name are stripped on import
        self.assertEqual([row.name for row in rows], ['Say "hi" Bob', "Bob"])
        self.assertEqual([row.category_id for row in rows], ["c1", "c1"])


if __name__ == "__main__":
    unittest.main()
