"""
Tests for ViewportRenderer: decoration styles, range widening, idempotence
and marker-based clearing.
"""
import os

import pytest
from unittest.mock import MagicMock

from colortags.tags.store import TagStore
from colortags.ui.listing import Overlay
from colortags.ui.renderer import RenderState, ViewportRenderer


def path_of(view, name):
    return os.path.join(view.directory, name)


@pytest.fixture
def store():
    return TagStore()


@pytest.fixture
def renderer(store):
    return ViewportRenderer(store)


def ours(view):
    return [o for o in view.all_overlays() if o.owner == ViewportRenderer.OVERLAY_OWNER]


class TestApply:
    def test_untagged_range_renders_nothing(self, renderer, listing):
        """Scenario C: nothing tagged, nothing drawn, clear is a no-op."""
        assert renderer.apply(listing, 0, 10) == 0
        assert listing.all_overlays() == []
        assert renderer.clear(listing) == 0

    def test_block_style(self, renderer, store, listing):
        store.set_color({path_of(listing, "b.txt")}, "red")

        assert renderer.apply(listing) == 1

        entry = listing.find_entry("b.txt")
        assert ours(listing) == [
            Overlay(entry.name_end, entry.name_end, ViewportRenderer.OVERLAY_OWNER, "block", "red", "■")
        ]

    def test_background_style(self, store, listing):
        renderer = ViewportRenderer(store, style="background")
        store.set_color({path_of(listing, "c.txt")}, "#ff0000")

        renderer.apply(listing)

        entry = listing.find_entry("c.txt")
        (overlay,) = ours(listing)
        assert (overlay.start, overlay.end) == (entry.name_start, entry.name_end)
        assert overlay.style == "background"
        assert overlay.color == "#ff0000"

    def test_relative_ids(self, store, listing):
        renderer = ViewportRenderer(store, relative=True)
        store.set_color({"a.txt"}, "blue")

        assert renderer.apply(listing) == 1

    def test_idempotent(self, renderer, store, listing):
        store.set_color({path_of(listing, "a.txt"), path_of(listing, "e.txt")}, "red")
        renderer.apply(listing)
        first = listing.all_overlays()
        changed = MagicMock()
        listing.overlays_changed.connect(changed)

        assert renderer.apply(listing) == 0
        assert listing.all_overlays() == first
        changed.assert_not_called()

    def test_retag_replaces_decoration(self, renderer, store, listing):
        file_id = path_of(listing, "a.txt")
        store.set_color({file_id}, "red")
        renderer.apply(listing)
        store.set_color({file_id}, "blue")

        assert renderer.apply(listing) == 1
        assert [o.color for o in ours(listing)] == ["blue"]

    def test_untagged_entry_left_untouched(self, renderer, store, listing):
        file_id = path_of(listing, "a.txt")
        store.set_color({file_id}, "red")
        renderer.apply(listing)
        store.set_color({file_id}, "")

        renderer.apply(listing)
        assert len(ours(listing)) == 1

    def test_foreign_overlays_are_kept(self, renderer, store, listing):
        entry = listing.find_entry("a.txt")
        foreign = Overlay(entry.name_start, entry.name_end, "host", "background", "yellow")
        listing.add_overlay(foreign)
        store.set_color({path_of(listing, "a.txt")}, "red")

        renderer.apply(listing)
        renderer.clear(listing)

        assert listing.all_overlays() == [foreign]

    def test_pseudo_entries_skipped(self, store, listing):
        lookup = MagicMock()
        lookup.color_of.return_value = "red"
        renderer = ViewportRenderer(lookup)

        renderer.apply(listing)

        names = {listing.entry_at(o.start).name for o in listing.all_overlays()}
        assert names == {"a.txt", "b.txt", "c.txt", "d.txt", "e.txt"}

    def test_state_returns_to_cleared(self, renderer, store, listing):
        seen = []
        original = listing.add_overlay

        def spy(overlay):
            seen.append(renderer.state)
            original(overlay)

        listing.add_overlay = spy
        store.set_color({path_of(listing, "a.txt")}, "red")
        renderer.apply(listing)

        assert seen == [RenderState.APPLYING]
        assert renderer.state is RenderState.CLEARED


class TestViewport:
    def test_only_visible_window_is_rendered(self, renderer, store, big_listing):
        store.set_color({path_of(big_listing, f"file{i:03d}.txt") for i in range(200)}, "red")

        # 10 visible lines: header, summary, . and .., 6 files
        assert renderer.apply(big_listing) == 6

    def test_requested_range_is_widened_to_visible(self, renderer, store, big_listing):
        store.set_color({path_of(big_listing, f"file{i:03d}.txt") for i in range(200)}, "red")
        far = big_listing.find_entry("file150.txt")

        renderer.apply(big_listing, far.line_start, far.line_end)

        rendered = {big_listing.entry_at(o.start).name for o in big_listing.all_overlays()}
        assert "file150.txt" in rendered
        assert "file000.txt" in rendered
        # the union is one span: everything up to the requested entry, nothing past it
        assert "file100.txt" in rendered
        assert "file151.txt" not in rendered

    def test_range_boundary_mid_entry_covers_entry(self, renderer, store, listing):
        store.set_color({path_of(listing, "a.txt")}, "red")
        entry = listing.find_entry("a.txt")
        listing.set_visible_range(0, 1)

        renderer.apply(listing, entry.line_end - 2, entry.line_end - 1)

        assert len(ours(listing)) == 1


class TestClear:
    def test_clear_whole_listing(self, renderer, store, listing):
        store.set_color({path_of(listing, n) for n in ("a.txt", "b.txt")}, "red")
        renderer.apply(listing)

        assert renderer.clear(listing) == 2
        assert listing.all_overlays() == []

    def test_clear_range(self, renderer, store, listing):
        store.set_color({path_of(listing, n) for n in ("a.txt", "b.txt")}, "red")
        renderer.apply(listing)
        entry = listing.find_entry("a.txt")

        assert renderer.clear(listing, entry.line_start, entry.line_end) == 1
        assert [listing.entry_at(o.start).name for o in ours(listing)] == ["b.txt"]

    def test_clear_does_not_consult_tags(self, listing):
        lookup = MagicMock()
        lookup.color_of.return_value = "red"
        renderer = ViewportRenderer(lookup)
        renderer.apply(listing)
        lookup.reset_mock()

        renderer.clear(listing)

        lookup.color_of.assert_not_called()
        assert listing.all_overlays() == []

    def test_refresh_rebuilds_from_scratch(self, renderer, store, listing):
        file_id = path_of(listing, "a.txt")
        store.set_color({file_id}, "red")
        renderer.apply(listing)
        store.set_color({file_id}, "")

        renderer.refresh(listing)

        assert listing.all_overlays() == []

    def test_forget_removes_only_given_ids(self, renderer, store, listing):
        store.set_color({path_of(listing, n) for n in ("a.txt", "b.txt")}, "red")
        renderer.apply(listing)

        assert renderer.forget(listing, {path_of(listing, "a.txt")}) == 1
        assert [listing.entry_at(o.start).name for o in ours(listing)] == ["b.txt"]

    def test_forget_reaches_off_screen_entries(self, renderer, store, big_listing):
        file_id = path_of(big_listing, "file003.txt")
        store.set_color({file_id}, "red")
        renderer.apply(big_listing)
        big_listing.scroll_to_line(120)

        assert renderer.forget(big_listing, {file_id}) == 1
        assert big_listing.all_overlays() == []
