# -*- coding: utf-8 -*-
import pytest

from memory_store import MemorySheetStore
from roster_aggregate import group_by_play
from roster_mutations import RosterService
from roster_store import MutationRejectedError, SheetNotFoundError, StaleSnapshotError
from roster_sync import RowSelection, filter_rows

from conftest import HEADERS, ROSTER_ROWS


class FailingAppendStore(MemorySheetStore):
    def append_row(self, name, values):
        if "FAIL" in values:
            raise MutationRejectedError("append_row", name, "refused")
        super().append_row(name, values)


class HalfArchiveStore(MemorySheetStore):
    def archive_play(self, play_name):
        super().archive_play(play_name)
        raise MutationRejectedError("archive_play", self.config.main_sheet, "timeout after move")


class RejectingUpdateStore(MemorySheetStore):
    def update_cell(self, name, row, col, value):
        raise MutationRejectedError("update_cell", name, "protected range")


class RefusingArchiveStore(MemorySheetStore):
    def archive_play(self, play_name):
        raise MutationRejectedError("archive_play", self.config.main_sheet, "backend down")


def _sheets(config):
    return {config.main_sheet: {"headers": list(HEADERS), "rows": [list(r) for r in ROSTER_ROWS]}}


def test_read_is_served_from_cache(service, config):
    first = service.read(config.main_sheet)
    assert service.read(config.main_sheet) is first
    fresh = service.read(config.main_sheet, refresh=True)
    assert fresh is not first
    assert fresh.raw_rows() == first.raw_rows()


def test_missing_sheet_raises(service):
    with pytest.raises(SheetNotFoundError) as e:
        service.read("YOK")
    assert e.value.sheet == "YOK"


def test_update_cell_invalidates_and_stales_snapshot(service, config):
    snap = service.read(config.main_sheet)
    service.update_cell(snap, 0, 2, "Prens Hamlet")

    with pytest.raises(StaleSnapshotError):
        service.update_cell(snap, 1, 2, "Ofelya")

    fresh = service.read(config.main_sheet)
    assert fresh.generation > snap.generation
    assert fresh.rows[0].cells[2] == "Prens Hamlet"
    assert fresh.rows[1].cells[2] == "Ophelia"


def test_update_cell_by_displayed_row(service, config):
    snap = service.read(config.main_sheet)
    row = filter_rows(snap, "İlker")[0]
    service.update_cell(snap, row, 3, "İlker Işıkçı")
    assert service.read(config.main_sheet).rows[4].cells[3] == "İlker Işıkçı"


def test_insert_then_delete_without_reread_is_refused(config):
    rows = [[f"Oyun {i}", "Oyuncu", "Rol", f"Kişi {i}"] for i in range(5)]
    store = MemorySheetStore({"S": {"headers": list(HEADERS), "rows": rows}}, config=config)
    service = RosterService(store, config=config)

    snap = service.read("S")
    service.insert_row_after(snap, 3, ["Yeni", "Oyuncu", "Rol", "Yeni Kişi"])
    with pytest.raises(StaleSnapshotError):
        service.delete_row(snap, 3)

    after = service.read("S")
    assert len(after) == 6
    assert after.rows[4].cells[0] == "Yeni"
    assert after.rows[3].cells[0] == "Oyun 3"


def test_insert_at_top_and_at_slot(service, config):
    snap = service.read(config.main_sheet)
    service.insert_row_after(snap, None, ["Martı", "Oyuncu", "Nina", "Elif"])
    snap = service.read(config.main_sheet)
    assert snap.rows[0].cells[0] == "Martı"

    sel = RowSelection()
    sel.toggle_insert_below(1)
    service.insert_at_slot(snap, sel, ["Martı", "Oyuncu", "Treplev", "Deniz"])
    assert sel.insert_after is None
    assert service.read(config.main_sheet).rows[2].cells[2] == "Treplev"

    with pytest.raises(ValueError):
        service.insert_at_slot(service.read(config.main_sheet), sel, ["x"])


def test_insert_out_of_range(service, config):
    snap = service.read(config.main_sheet)
    with pytest.raises(IndexError):
        service.insert_row_after(snap, len(snap), ["x"])


def test_delete_reports_last_assignment_and_drops_dependents(service, config):
    service.read(config.extras_sheet)
    snap = service.read(config.main_sheet)

    result = service.delete_row(snap, 4)
    assert result.last_assignment is not None
    assert result.last_assignment.person == "İlker Işık"
    assert result.last_assignment.play == "Cimri"
    assert service.cache.get(config.extras_sheet) is None
    assert service.cache.get(config.main_sheet) is None
    assert len(service.read(config.main_sheet)) == len(ROSTER_ROWS) - 1


def test_delete_of_repeated_person_has_no_flag(service, config):
    snap = service.read(config.main_sheet)
    assert service.delete_row(snap, 0).last_assignment is None


def test_rejected_mutation_keeps_cache(config):
    service = RosterService(RejectingUpdateStore(_sheets(config), config=config), config=config)
    snap = service.read(config.main_sheet)
    with pytest.raises(MutationRejectedError):
        service.update_cell(snap, 0, 2, "x")
    assert service.cache.get(config.main_sheet) is snap
    assert service.cache.generation(config.main_sheet) == snap.generation


def test_paste_reports_each_item(config):
    store = FailingAppendStore(_sheets(config), config=config)
    service = RosterService(store, config=config)
    before = service.read(config.main_sheet)

    result = service.paste_rows(config.main_sheet, [["A", "Oyuncu", "", "x"], ["FAIL"], ["B", "Oyuncu", "", "y"]])
    assert (result.succeeded, result.failed, result.complete) == (2, 1, False)
    assert [i.ok for i in result.items] == [True, False, True]
    assert "refused" in result.items[1].error

    after = service.read(config.main_sheet)
    assert after.generation > before.generation
    assert [r.cells[0] for r in after.rows[-2:]] == ["A", "B"]


def test_copy_then_paste(service, config):
    snap = service.read(config.main_sheet)
    sel = RowSelection()
    sel.click(1)
    sel.click(0, extend=True)
    copied = service.copy_selection(snap, sel)
    assert copied == [ROSTER_ROWS[0], ROSTER_ROWS[1]]

    result = service.paste_rows(config.main_sheet, copied)
    assert result.complete
    after = service.read(config.main_sheet)
    assert after.raw_rows()[-2:] == copied


def test_archive_play_moves_rows_and_retry_is_noop(service, config):
    result = service.archive_play("Hamlet")
    assert result.moved_count == 3
    assert not result.partial
    assert "Hamlet" not in [p.name for p in group_by_play(service.records())]
    archived = service.records(config.archive_sheet)
    assert len([r for r in archived if r.play == "Hamlet"]) == 3

    again = service.archive_play("Hamlet")
    assert again.moved_count == 0
    assert not again.partial
    assert len(service.records(config.archive_sheet)) == 3


def test_archive_failure_after_move_is_partial(config):
    service = RosterService(HalfArchiveStore(_sheets(config), config=config), config=config)
    result = service.archive_play("Cimri")
    assert result.partial
    assert result.remaining_in_roster == 0
    assert any("timeout after move" in w for w in result.warnings)


def test_archive_failure_before_move_raises(config):
    service = RosterService(RefusingArchiveStore(_sheets(config), config=config), config=config)
    with pytest.raises(MutationRejectedError):
        service.archive_play("Cimri")
    assert len(service.read(config.main_sheet)) == len(ROSTER_ROWS)


def test_sync_extras_adds_missing_once(service, config):
    service.read(config.extras_sheet)
    assert service.sync_extras() == 1
    registry = service.read(config.extras_sheet)
    assert registry.raw_rows()[-1] == ["Mehmet Demir", "Hamlet", "Figüran"]
    assert service.sync_extras() == 0


def test_ensure_sheet_creates_with_default_headers(service, config):
    snap = service.ensure_sheet(config.holding_sheet)
    assert list(snap.headers) == ["Kişi", "Kategori", "Başlangıç", "Bitiş", "Açıklama"]
    assert len(snap) == 0
    assert config.holding_sheet in service.list_sheets()


def test_add_play(service, config):
    service.add_play("  Martı ")
    plays = {p.name: p for p in group_by_play(service.records())}
    assert plays["Martı"].person_count == 0
    with pytest.raises(ValueError):
        service.add_play("   ")


def test_notification_delete_uses_sheet_position(service, config):
    feed = service.notification_feed()
    assert feed.rows[0].cells == ("2026-10-25", "mesaj 24")
    result = service.delete_notification(feed, 0)
    assert result.row_index == 24
    assert result.last_assignment is None

    feed = service.notification_feed()
    assert len(feed.rows) == 24
    assert feed.rows[0].cells[1] == "mesaj 23"


def test_clear_notifications(service, config):
    service.clear_oldest_notifications()
    rows = service.read(config.notifications_sheet).raw_rows()
    assert [r[1] for r in rows] == [f"mesaj {i}" for i in range(20, 25)]

    service.clear_notifications()
    assert len(service.read(config.notifications_sheet)) == 0


@pytest.mark.parametrize("row, col", [(-1, 0), (len(ROSTER_ROWS), 0), (0, -1)])
def test_update_cell_out_of_range_stays_local(config, row, col):
    service = RosterService(RejectingUpdateStore(_sheets(config), config=config), config=config)
    snap = service.read(config.main_sheet)
    with pytest.raises(IndexError):
        service.update_cell(snap, row, col, "x")
    assert service.cache.get(config.main_sheet) is snap


def test_archive_failure_with_earlier_archive_rows_raises(config):
    sheets = _sheets(config)
    sheets[config.archive_sheet] = {"headers": list(HEADERS), "rows": [["Cimri", "Oyuncu", "Cleante", "Selin"]]}
    service = RosterService(RefusingArchiveStore(sheets, config=config), config=config)
    with pytest.raises(MutationRejectedError):
        service.archive_play("Cimri")
    assert len(service.records(config.archive_sheet)) == 1


def test_archive_counts_only_new_rows(config):
    sheets = _sheets(config)
    sheets[config.archive_sheet] = {"headers": list(HEADERS), "rows": [["Cimri", "Oyuncu", "Cleante", "Selin"]]}
    service = RosterService(MemorySheetStore(sheets, config=config), config=config)
    result = service.archive_play("Cimri")
    assert result.moved_count == 2
    assert not result.partial
    assert len(service.records(config.archive_sheet)) == 3
