import logging
from collections import defaultdict
from itertools import combinations
from typing import Dict, List, Tuple

from ..database.ops import DBOperations
from .ids import IdAllocator


def count_cooccurrences(db_ops: DBOperations) -> Dict[Tuple[int, int], int]:
    """
    Counts, for every ordered pair of keywords, the images carrying both.
    Both directions of a pair are always counted together.
    """
    tags_by_image: Dict[int, List[int]] = defaultdict(list)
    rows = db_ops.fetchall("""
        SELECT image, tag
        FROM AgLibraryKeywordImage
        WHERE image IN (SELECT image
                        FROM AgLibraryKeywordImage
                        GROUP BY image
                        HAVING COUNT(image) > 1)
        ORDER BY image, id_local
    """)
    for image_id, tag in rows:
        tags_by_image[image_id].append(tag)

    counts: Dict[Tuple[int, int], int] = defaultdict(int)
    for tags in tags_by_image.values():
        for a, b in combinations(tags, 2):
            counts[(a, b)] += 1
            counts[(b, a)] += 1
    return counts


def rebuild_cooccurrences(db_ops: DBOperations, allocator: IdAllocator) -> int:
    """
    Lightroom keeps a table of keywords used together on the same image.
    Rather than tracking every change we make, the whole table is rebuilt
    from the keyword assignments at the end. Returns the rows written.
    """
    logging.info("Rebuilding keyword cooccurrences...")
    db_ops.execute("DELETE FROM AgLibraryKeywordCooccurrence")

    counts = count_cooccurrences(db_ops)
    for (tag1, tag2), value in counts.items():
        db_ops.execute("""
            INSERT INTO AgLibraryKeywordCooccurrence (id_local, tag1, tag2, value)
            VALUES (?, ?, ?, ?)
        """, (allocator.allocate(), tag1, tag2, value))

    logging.info(f"Wrote {len(counts)} cooccurrence rows.")
    return len(counts)
