import csv
import logging
from typing import List

from .models import ImageOutcome, TransferStats

HEADERS = [
    "Image ID",
    "Folder",
    "File",
    "Status",
    "Faces",
    "People",
    "Keywords",
    "Stack",
    "GPS",
    "Notes",
]


class ReportGenerator:
    def __init__(self, stats: TransferStats, outcomes: List[ImageOutcome]):
        self.stats = stats
        self.outcomes = outcomes

    def log_summary(self):
        """Logs the final statistics of a run, people sorted by name."""
        s = self.stats
        logging.info("=== Transfer Summary ===")
        logging.info(f"Photos:                  {s.images}")
        logging.info(f"Photos without face data: {s.images_without_faces}")
        logging.info(f"Faces inserted:          {s.faces_inserted}")
        logging.info(f"People:                  {len(s.people)}")
        for name in sorted(s.people):
            logging.info(f"  {name}: {s.people[name]}")
        logging.info(f"Unnamed faces:           {s.unnamed_faces}")
        logging.info(f"Stacks:                  {s.stacks}")
        logging.info(f"Keywords:                {s.keywords}")

    def write_csv(self, output_csv: str) -> int:
        """
        Writes one row per catalog photo. Multi-valued columns are joined
        with "; ". Returns the number of rows written.
        """
        logging.info(f"Writing report -> {output_csv}")
        with open(output_csv, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(HEADERS)
            for o in self.outcomes:
                writer.writerow([
                    o.image_id,
                    o.folder_path,
                    o.file_name,
                    o.status,
                    o.faces,
                    "; ".join(o.people),
                    "; ".join(o.keywords),
                    o.stack_id or "",
                    "yes" if o.gps else "",
                    "; ".join(o.notes),
                ])

        logging.info(f"Report complete. {len(self.outcomes)} photos.")
        return len(self.outcomes)
