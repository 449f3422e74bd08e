from __future__ import annotations

from typing import List

from ..collection import CollectionType
from ..field import Field, FieldFlag, FieldType
from ..fieldformat import FormatFlag
from .base import Preset


_PEOPLE = FieldFlag.ALLOW_MULTIPLE | FieldFlag.ALLOW_GROUPED | FieldFlag.ALLOW_COMPLETION
_GROUPED = FieldFlag.ALLOW_GROUPED | FieldFlag.ALLOW_COMPLETION


def _fields() -> List[Field]:
    return [
        Field("title", "Title", flags=FieldFlag.NO_DELETE, format=FormatFlag.TITLE),
        Field("medium", "Medium", FieldType.CHOICE, flags=FieldFlag.ALLOW_GROUPED,
              allowed=["DVD", "VHS", "VCD", "DivX", "Blu-ray", "HD DVD"]),
        Field("year", "Production Year", FieldType.NUMBER, flags=FieldFlag.ALLOW_GROUPED),
        Field("certification", "Certification", FieldType.CHOICE, flags=FieldFlag.ALLOW_GROUPED,
              allowed=["G (USA)", "PG (USA)", "PG-13 (USA)", "R (USA)", "U (USA)"]),
        Field("genre", "Genre", flags=_PEOPLE),
        Field("region", "Region", FieldType.CHOICE, flags=FieldFlag.ALLOW_GROUPED,
              allowed=[f"Region {n}" for n in range(9)]),
        Field("nationality", "Nationality", flags=_PEOPLE),
        Field("format", "Format", FieldType.CHOICE, flags=FieldFlag.ALLOW_GROUPED,
              allowed=["NTSC", "PAL", "SECAM"]),

        Field("cast", "Cast", FieldType.TABLE, "Cast", flags=FieldFlag.ALLOW_GROUPED,
              format=FormatFlag.NAME,
              properties={"columns": "2", "column1": "Actor/Actress", "column2": "Role"}),

        Field("director", "Director", category="Crew", flags=_PEOPLE, format=FormatFlag.NAME),
        Field("producer", "Producer", category="Crew", flags=_PEOPLE, format=FormatFlag.NAME),
        Field("writer", "Writer", category="Crew", flags=_PEOPLE, format=FormatFlag.NAME),
        Field("composer", "Composer", category="Crew", flags=_PEOPLE, format=FormatFlag.NAME),

        Field("studio", "Studio", category="Publishing", flags=_PEOPLE),
        Field("language", "Language Tracks", category="Features", flags=_PEOPLE),
        Field("subtitle", "Subtitle Languages", category="Features", flags=_PEOPLE),
        Field("audio-track", "Audio Tracks", category="Features", flags=_PEOPLE),
        Field("running-time", "Running Time", FieldType.NUMBER, "Features",
              description="The running time of the video (in minutes)"),
        Field("aspect-ratio", "Aspect Ratio", category="Features", flags=_PEOPLE),
        Field("widescreen", "Widescreen", FieldType.BOOL, "Features", flags=FieldFlag.ALLOW_GROUPED),
        Field("color", "Color Mode", FieldType.CHOICE, "Features", flags=FieldFlag.ALLOW_GROUPED,
              allowed=["Color", "Black & White"]),
        Field("directors-cut", "Director's Cut", FieldType.BOOL, "Features",
              flags=FieldFlag.ALLOW_GROUPED),

        Field("plot", "Plot Summary", FieldType.PARA, "Plot Summary"),

        Field("rating", "Personal Rating", FieldType.RATING, "Personal",
              flags=FieldFlag.ALLOW_GROUPED, properties={"minimum": "1", "maximum": "5"}),
        Field("pur_date", "Purchase Date", FieldType.DATE, "Personal", format=FormatFlag.DATE),
        Field("gift", "Gift", FieldType.BOOL, "Personal", flags=FieldFlag.ALLOW_GROUPED),
        Field("pur_price", "Purchase Price", category="Personal"),
        Field("loaned", "Loaned", FieldType.BOOL, "Personal", flags=FieldFlag.ALLOW_GROUPED),
        Field("keyword", "Keywords", category="Personal", flags=_PEOPLE),
        Field("comments", "Comments", FieldType.PARA, "Personal"),
        Field("cover", "Cover", FieldType.IMAGE, "Cover"),
    ]


PRESET = Preset(
    kind=CollectionType.VIDEO,
    display_name="Videos",
    unit="video",
    unit_title="Video",
    default_group="genre",
    build_fields=_fields,
    match_fields=("year", "director", "studio", "medium"),
)
