from mediadb.media_type import MediaType
from mediadb.models import MediaRecord, MoviePayload, MusicReleasePayload, WikiPayload
from mediadb.naming import NoteNaming, replace_illegal_file_name_characters, replace_tags


def _movie(title="Dune: Part Two", year="2024") -> MediaRecord:
    return MediaRecord(
        title=title,
        english_title=title,
        year=year,
        data_source="TMDBMovieAPI",
        id="693134",
        payload=MoviePayload(genres=("Sci-Fi", "Adventure")),
    )


def test_replace_tags_plain_and_operators():
    record = _movie()

    assert replace_tags("{{ title }} ({{ year }})", record) == "Dune: Part Two (2024)"
    assert replace_tags("{{ENUM:genres}}", record) == "Sci-Fi, Adventure"
    assert replace_tags("{{ LIST:genres }}", record) == "- Sci-Fi\n- Adventure"
    assert replace_tags("{{ userData.watched }}", record) == "false"


def test_replace_tags_invalid_tags():
    record = _movie()

    assert replace_tags("{{ nope }}", record) == "{{ INVALID TEMPLATE TAG - object undefined }}"
    assert replace_tags("{{ LIST:title }}", record) == (
        "{{ INVALID TEMPLATE TAG - operator LIST is only applicable on an array }}"
    )
    assert replace_tags("{{ UPPER:title }}", record) == "{{ INVALID TEMPLATE TAG - unknown operator UPPER }}"
    assert replace_tags("{{ nope }}", record, ignore_undefined=True) == ""


def test_illegal_characters_are_replaced():
    assert replace_illegal_file_name_characters('AC/DC: "Live" [1991]?') == "AC-DC - 'Live' (1991)"
    assert replace_illegal_file_name_characters("#1 <Best>*") == "1 Best"


def test_default_file_names_and_folders():
    naming = NoteNaming()

    assert naming.file_name(_movie()) == "Dune - Part Two (2024)"
    assert naming.note_path(_movie()) == "Media DB/movies/Dune - Part Two (2024).md"

    album = MediaRecord(
        title="OK Computer",
        english_title="OK Computer",
        year="1997",
        data_source="MusicBrainz API",
        id="b84e",
        payload=MusicReleasePayload(artists=("Radiohead",)),
    )
    assert naming.file_name(album) == "OK Computer (by Radiohead - 1997)"

    wiki = MediaRecord(title="Dune (novel)", english_title="Dune (novel)", year="", data_source="Wikipedia API", id="1", payload=WikiPayload())
    assert naming.file_name(wiki) == "Dune (novel)"


def test_custom_templates_override_defaults():
    naming = NoteNaming({MediaType.MOVIE: "{{ year }} - {{ title }}"}, {MediaType.MOVIE: ""})

    assert naming.file_name(_movie("Dune", "2021")) == "2021 - Dune"
    assert naming.note_path(_movie("Dune", "2021")) == "2021 - Dune.md"
