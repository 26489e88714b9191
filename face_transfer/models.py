from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, List, NamedTuple, Optional


class Point(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class Quad:
    """
    A face region given by its four corners in unit-square coordinates.
    """
    bl: Point
    br: Point
    tl: Point
    tr: Point

    def map(self, fn: Callable[[Point], Point]) -> "Quad":
        return Quad(fn(self.bl), fn(self.br), fn(self.tl), fn(self.tr))


@dataclass
class SourceFace:
    """A non-rejected face detected by Aperture."""
    quad: Quad
    name: Optional[str] = None   # NFC normalized; None when unnamed


@dataclass
class CatalogImage:
    """
    One row of the Lightroom image list, i.e. the join key we correlate
    against the Aperture masters.
    """
    image_id: int
    file_name: str
    folder_path: str
    orientation: str            # AB/BC/CD/DA
    mod_time: int               # externalModTime, same epoch as Aperture
    copy_name: Optional[str] = None


@dataclass(frozen=True)
class KeywordRoots:
    """
    Resolved keyword folders for one run.
    Passed to whoever creates keywords instead of being cached globally.
    """
    top_id: int
    top_genealogy: str
    face_root_id: int
    face_root_genealogy: str
    tag_root_id: int
    tag_root_genealogy: str


@dataclass
class ImageOutcome:
    """Per-photo result, used for the CSV report."""
    image_id: int
    folder_path: str
    file_name: str
    status: str = "pending"
    faces: int = 0
    people: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    stack_id: Optional[str] = None
    gps: bool = False
    notes: List[str] = field(default_factory=list)


@dataclass
class TransferStats:
    images: int = 0
    images_without_faces: int = 0
    faces_inserted: int = 0
    unnamed_faces: int = 0
    people: Counter = field(default_factory=Counter)
    stacks: int = 0
    keywords: int = 0
