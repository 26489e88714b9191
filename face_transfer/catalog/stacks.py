import logging
from typing import Dict, Sequence

from ..database.ops import DBOperations
from .ids import IdAllocator, new_global_id

STACK_CLEANUP = [
    "DELETE FROM AgLibraryFolderStackImage",
    "DELETE FROM AgLibraryFolderStackData",
    "DELETE FROM AgLibraryFolderStack",
]


class StackBuilder:
    def __init__(self, db_ops: DBOperations, allocator: IdAllocator):
        self.db = db_ops
        self.ids = allocator

    def remove_all(self):
        logging.info("Removing stacks...")
        self.db.run_cleanup(STACK_CLEANUP)

    def build(self, groups: Dict[str, Sequence[int]]) -> int:
        """
        Creates one collapsed stack per Aperture stack.
        `groups` maps the Aperture stack uuid to image ids in the order the
        images were visited; that order becomes the stack order.
        """
        for stack_key, images in groups.items():
            stack_id = self.create_stack(images)
            logging.info(f"Created stack of {len(images)} images.")
            logging.debug(f"Stack {stack_key} -> {stack_id}")
        return len(groups)

    def create_stack(self, images: Sequence[int]) -> int:
        stack_id = self.ids.allocate()
        self.db.execute("""
            INSERT INTO AgLibraryFolderStack (id_local, id_global, collapsed, text)
            VALUES (?, ?, 1, '')
        """, (stack_id, new_global_id()))

        for position, image_id in enumerate(images, start=1):
            self.db.execute("""
                INSERT INTO AgLibraryFolderStackImage (id_local, collapsed, image, position, stack)
                VALUES (?, 1, ?, ?, ?)
            """, (self.ids.allocate(), image_id, position, stack_id))

        return stack_id
