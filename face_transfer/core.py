import logging
from pathlib import Path
from typing import Dict, List

from tqdm import tqdm

from . import config
from .catalog.cooccurrence import rebuild_cooccurrences
from .catalog.faces import FaceSynthesizer
from .catalog.ids import IdAllocator
from .catalog.keywords import KeywordTree, normalize
from .catalog.stacks import StackBuilder
from .database.db import DBManager, transaction
from .database.ops import DBOperations
from .database.schema import CATALOG_SCHEMA, FACES_SCHEMA, LIBRARY_SCHEMA
from .exceptions import AmbiguousMatchError, FaceTransferError, NotFoundError
from .metadata.gps import GpsTransfer
from .models import CatalogImage, ImageOutcome, KeywordRoots, TransferStats
from .source.resolver import ApertureResolver

UNNAMED = "[Unnamed]"


class FaceTransferApp:
    def __init__(self, catalog_path: Path, library_root: Path):
        self.catalog_manager = DBManager(catalog_path, schema=CATALOG_SCHEMA)
        self.library_manager = DBManager(
            library_root / config.LIBRARY_DB_SUBPATH, read_only=True, schema=LIBRARY_SCHEMA
        )
        self.faces_manager = DBManager(
            library_root / config.FACES_DB_SUBPATH, read_only=True, schema=FACES_SCHEMA
        )
        self.outcomes: List[ImageOutcome] = []

    def transfer(self,
                 face_folder: str = config.DEFAULT_FACE_FOLDER,
                 tag_folder: str = config.DEFAULT_TAG_FOLDER,
                 dry_run: bool = False) -> TransferStats:
        """
        Runs the whole migration in one catalog transaction.
        1. Clear keywords & stacks, recreate the keyword folders
        2. Per photo: faces, keywords, stack membership, GPS
        3. Stacks, tag keywords, name normalization, cooccurrences

        Nothing is kept if any step fails; with dry_run nothing is kept
        even on success.
        """
        self.outcomes = []
        with self.catalog_manager as catalog_conn, \
                self.library_manager as library_conn, \
                self.faces_manager as faces_conn:
            with transaction(catalog_conn, commit=not dry_run):
                return self._migrate(
                    DBOperations(catalog_conn),
                    ApertureResolver(DBOperations(library_conn), DBOperations(faces_conn)),
                    face_folder,
                    tag_folder,
                )

    def _migrate(self, catalog: DBOperations, resolver: ApertureResolver,
                 face_folder: str, tag_folder: str) -> TransferStats:
        stats = TransferStats()
        ids = IdAllocator(catalog)
        keywords = KeywordTree(catalog, ids)
        stacks = StackBuilder(catalog, ids)

        # --- Step 1: Prepare catalog ---
        keywords.remove_all()
        roots = keywords.recreate_roots(face_folder, tag_folder)
        stacks.remove_all()

        # --- Step 2: Per photo ---
        synthesizer = FaceSynthesizer(catalog, ids, keywords, roots)
        gps = GpsTransfer(catalog)
        stack_groups: Dict[str, List[int]] = {}
        tags_by_image: Dict[int, List[str]] = {}

        images = catalog.fetch_catalog_images()
        logging.info(f"Transferring faces for {len(images)} photos...")
        for image in tqdm(images, desc="Photos", unit="photo"):
            outcome = self._transfer_image(image, resolver, synthesizer, gps, stats)
            self.outcomes.append(outcome)
            if outcome.keywords:
                tags_by_image[image.image_id] = outcome.keywords
            if outcome.stack_id:
                stack_groups.setdefault(outcome.stack_id, []).append(image.image_id)

        # --- Step 3: Catalog-wide ---
        logging.info("Creating stacks...")
        stats.stacks = stacks.build(stack_groups)

        logging.info("Assigning keywords...")
        stats.keywords = self._assign_tags(keywords, roots, tags_by_image)

        keywords.normalize_names()
        rebuild_cooccurrences(catalog, ids)
        return stats

    def _transfer_image(self, image: CatalogImage, resolver: ApertureResolver,
                        synthesizer: FaceSynthesizer, gps: GpsTransfer,
                        stats: TransferStats) -> ImageOutcome:
        stats.images += 1
        outcome = ImageOutcome(image.image_id, image.folder_path, image.file_name)

        try:
            master = resolver.resolve_photo(image.file_name, image.mod_time)
        except (NotFoundError, AmbiguousMatchError) as e:
            logging.warning(f"Skipping {image.file_name}: {e}")
            stats.images_without_faces += 1
            outcome.status = "unmatched"
            outcome.notes.append(str(e))
            return outcome

        faces = resolver.list_faces(master)
        if faces:
            synthesizer.replace_faces(image, faces)
            logging.info(f"{image.file_name}: {', '.join(f.name or UNNAMED for f in faces)}")
            stats.faces_inserted += len(faces)
            for face in faces:
                if face.name:
                    stats.people[face.name] += 1
                else:
                    stats.unnamed_faces += 1
            outcome.faces = len(faces)
            outcome.people = [f.name for f in faces if f.name]
        else:
            # Nothing to replace, but Lightroom must still skip its own detection
            synthesizer.mark_face_process_done(image.image_id, image.orientation)
            stats.images_without_faces += 1
        outcome.status = "transferred"

        try:
            version = resolver.resolve_version(master, image.copy_name)
        except NotFoundError as e:
            logging.warning(f"{image.file_name}: {e}")
            outcome.notes.append(str(e))
            return outcome

        self._collect_enrichment(image, version, resolver, gps, outcome)
        return outcome

    def _collect_enrichment(self, image: CatalogImage, version: int,
                            resolver: ApertureResolver, gps: GpsTransfer,
                            outcome: ImageOutcome):
        """Keywords, stack and position. Failures only cost this photo its extras."""
        try:
            outcome.keywords = resolver.list_keywords(version)
        except FaceTransferError as e:
            logging.error(f"Failed to get keywords for {image.file_name}: {e}")
            outcome.notes.append("keywords failed")

        try:
            outcome.stack_id = resolver.resolve_stack_id(version)
        except FaceTransferError as e:
            logging.error(f"Failed to get stack for {image.file_name}: {e}")
            outcome.notes.append("stack failed")

        try:
            position = resolver.resolve_gps(version)
            if position is not None:
                outcome.gps = gps.transfer(image.image_id, *position)
        except FaceTransferError as e:
            logging.error(f"Failed to transfer GPS location for {image.file_name}: {e}")
            outcome.notes.append("gps failed")

    def _assign_tags(self, keywords: KeywordTree, roots: KeywordRoots,
                     tags_by_image: Dict[int, List[str]]) -> int:
        """
        Recreates Aperture's keywords under the tag folder and assigns them.
        Returns the number of distinct keywords used.
        """
        used = set()
        for image_id, names in tags_by_image.items():
            for name in names:
                keyword_id = keywords.find_or_create(
                    normalize(name), roots.tag_root_id, roots.tag_root_genealogy
                )
                keywords.ensure_image_link(image_id, keyword_id)
                used.add(keyword_id)
        logging.info(f"Assigned {len(used)} keywords.")
        return len(used)
