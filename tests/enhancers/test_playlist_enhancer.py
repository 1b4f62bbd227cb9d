from datetime import date

import pytest
from PIL import Image

from covercraft.config import CollageSettings
from covercraft.engine.layout import ImageSize
from covercraft.enhancers import ImageKind, PlaylistImageEnhancer, UnsupportedImageKindError
from covercraft.library import ItemKind, Library

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
YELLOW = (255, 255, 0, 255)

DAY = date(2024, 7, 4)


def _enhancer(library, settings=None, day=DAY):
    return PlaylistImageEnhancer(library, settings, today=lambda: day)


def _four_colors():
    # Listed out of name order; the collage is ordered by name.
    return [
        ("Delta", YELLOW, (64, 64)),
        ("Alpha", RED, (30, 90)),
        ("Charlie", BLUE, (200, 100)),
        ("Bravo", GREEN, (10, 10)),
    ]


def test_supports_only_playlists_with_primary_or_thumb(colored_playlist):
    library, playlist, items = colored_playlist(_four_colors())
    enhancer = _enhancer(library)

    assert enhancer.supports(playlist, ImageKind.PRIMARY)
    assert enhancer.supports(playlist, ImageKind.THUMB)
    assert not enhancer.supports(playlist, ImageKind.BACKDROP)
    assert not enhancer.supports(items[0], ImageKind.PRIMARY)


def test_zero_candidates_passes_original_through(make_item, make_playlist):
    bare = make_item("Bare")
    playlist = make_playlist("Empty", [bare])
    enhancer = _enhancer(Library([bare, playlist]))
    original = Image.new("RGB", (300, 200), (9, 9, 9))

    result = enhancer.enhance(playlist, ImageKind.PRIMARY, original)

    assert result is original
    assert enhancer.enhanced_size(playlist, ImageKind.PRIMARY, ImageSize(300, 200)) == ImageSize(300, 200)
    assert enhancer.enhanced_size(playlist, ImageKind.THUMB, ImageSize(300, 200)) == ImageSize(300, 200)


def test_square_with_four_candidates_is_a_name_ordered_grid(colored_playlist):
    library, playlist, _ = colored_playlist(_four_colors())
    enhancer = _enhancer(library)

    result = enhancer.enhance(playlist, ImageKind.PRIMARY, Image.new("RGB", (5, 5)))

    assert result.size == (800, 800)
    assert result.getpixel((200, 200)) == RED
    assert result.getpixel((600, 200)) == GREEN
    assert result.getpixel((200, 600)) == BLUE
    assert result.getpixel((600, 600)) == YELLOW
    assert enhancer.enhanced_size(playlist, ImageKind.PRIMARY, ImageSize(5, 5)) == ImageSize(800, 800)


def test_square_with_fewer_than_four_renders_first_image_only(colored_playlist):
    library, playlist, _ = colored_playlist(_four_colors()[:3])
    enhancer = _enhancer(library)

    result = enhancer.enhance(playlist, ImageKind.PRIMARY, Image.new("RGB", (5, 5)))

    # "Alpha" sorts first and is returned at its native size
    assert result.size == (30, 90)
    assert result.getpixel((0, 0)) == RED


def test_thumb_with_three_candidates_is_a_strip(colored_playlist):
    library, playlist, _ = colored_playlist(_four_colors()[:3])
    enhancer = _enhancer(library)

    result = enhancer.enhance(playlist, ImageKind.THUMB, Image.new("RGB", (5, 5)))

    assert result.size == (1600, 900)
    assert result.getpixel((100, 450)) == RED
    assert result.getpixel((600, 450)) == BLUE
    assert result.getpixel((1200, 450)) == YELLOW
    assert enhancer.enhanced_size(playlist, ImageKind.THUMB, ImageSize(5, 5)) == ImageSize(1600, 900)


def test_cache_key_is_stable_for_unchanged_playlist(colored_playlist):
    library, playlist, _ = colored_playlist(_four_colors())
    enhancer = _enhancer(library)

    assert enhancer.cache_key(playlist, ImageKind.PRIMARY) == enhancer.cache_key(playlist, ImageKind.PRIMARY)
    assert enhancer.cache_key(playlist, ImageKind.PRIMARY).startswith("3_")


def test_cache_key_changes_when_candidates_change(colored_playlist, make_image, make_item, make_playlist):
    library, playlist, items = colored_playlist(_four_colors()[:3])
    enhancer = _enhancer(library)
    before = enhancer.cache_key(playlist, ImageKind.PRIMARY)

    extra = make_item("Echo", image=make_image("Echo"))
    grown = make_playlist("Mix", [*items, extra])
    grown_enhancer = _enhancer(Library([*items, extra, grown]))

    assert grown_enhancer.cache_key(grown, ImageKind.PRIMARY) != before


def test_cache_key_follows_member_order_in_legacy_mode(make_image, make_item, make_playlist):
    tracks = [make_item(f"Track {index}", image=make_image(f"t{index}")) for index in range(6)]
    forward = make_playlist("Forward", tracks)
    backward = make_playlist("Backward", list(reversed(tracks)))
    enhancer = _enhancer(Library([*tracks, forward, backward]), CollageSettings(rotation="legacy"))

    assert enhancer.cache_key(forward, ImageKind.PRIMARY) != enhancer.cache_key(backward, ImageKind.PRIMARY)


def test_cache_key_uses_policy_version(colored_playlist):
    library, playlist, _ = colored_playlist(_four_colors())

    default_key = _enhancer(library).cache_key(playlist, ImageKind.PRIMARY)
    bumped_key = _enhancer(library, CollageSettings(policy_version="4")).cache_key(playlist, ImageKind.PRIMARY)

    assert bumped_key.startswith("4_")
    assert bumped_key[2:] == default_key[2:]


def test_episodes_of_one_series_share_a_single_cell(make_image, make_item, make_playlist):
    series = make_item("Show", kind=ItemKind.SERIES, image=make_image("show"))
    episodes = [make_item(f"Episode {n}", kind=ItemKind.EPISODE, parent=series) for n in range(3)]
    playlist = make_playlist("Binge", episodes)
    enhancer = _enhancer(Library([series, *episodes, playlist]))

    assert enhancer.cache_key(playlist, ImageKind.PRIMARY) == f"3_{series.id.hex}"


def test_rotation_is_stable_within_a_day(make_image, make_item, make_playlist):
    tracks = [make_item(f"Track {index:02d}", image=make_image(f"t{index}")) for index in range(10)]
    playlist = make_playlist("Big", tracks)
    library = Library([*tracks, playlist])

    morning = _enhancer(library, day=DAY).cache_key(playlist, ImageKind.PRIMARY)
    evening = _enhancer(library, day=DAY).cache_key(playlist, ImageKind.PRIMARY)
    keys = {
        _enhancer(library, day=date(2024, 7, offset)).cache_key(playlist, ImageKind.PRIMARY)
        for offset in range(1, 15)
    }

    assert morning == evening
    assert len(keys) > 1


def test_unsupported_kind_or_item_is_reported(colored_playlist):
    library, playlist, items = colored_playlist(_four_colors())
    enhancer = _enhancer(library)

    with pytest.raises(UnsupportedImageKindError):
        enhancer.cache_key(playlist, ImageKind.BACKDROP)
    with pytest.raises(UnsupportedImageKindError):
        enhancer.enhanced_size(playlist, ImageKind.LOGO, ImageSize(1, 1))
    with pytest.raises(UnsupportedImageKindError):
        enhancer.enhance(items[0], ImageKind.PRIMARY, Image.new("RGB", (1, 1)))


def test_render_returns_none_without_candidates(make_item, make_playlist):
    bare = make_item("Bare")
    playlist = make_playlist("Empty", [bare])

    assert _enhancer(Library([bare, playlist])).render(playlist, ImageKind.THUMB) is None


def test_plan_uses_explicit_reference_day(colored_playlist):
    library, playlist, _ = colored_playlist(_four_colors())
    enhancer = _enhancer(library)

    candidates, layout = enhancer.plan(playlist, ImageKind.PRIMARY, reference_day=date(2020, 1, 1))

    assert [c.name for c in candidates] == ["Alpha", "Bravo", "Charlie", "Delta"]
    assert layout.mode == "grid"
