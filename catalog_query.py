#!/usr/bin/env python

import argparse
import sqlite3
from pathlib import Path


def connect_db(db_path: Path) -> sqlite3.Connection:
    if not db_path.exists():
        raise SystemExit(f"Catalog not found: {db_path}")
    return sqlite3.connect(f"{db_path.resolve().as_uri()}?mode=ro", uri=True)


def list_people(conn: sqlite3.Connection):
    cur = conn.cursor()
    cur.execute("""
        SELECT k.id_local, k.name, COUNT(kf.id_local)
        FROM AgLibraryKeyword k
        LEFT JOIN AgLibraryKeywordFace kf ON kf.tag = k.id_local
        WHERE k.keywordType = 'person'
        GROUP BY k.id_local
        ORDER BY k.name
    """)
    rows = cur.fetchall()
    if not rows:
        print("No person keywords found.")
        return

    print("People:")
    print("id      | faces | name")
    print("--------+-------+-----")
    for kid, name, faces in rows:
        print(f"{kid:7d} | {faces:5d} | {name or ''}")


def show_image(conn: sqlite3.Connection, image_id: int):
    cur = conn.cursor()
    cur.execute("""
        SELECT I.id_local, O.pathFromRoot, F.originalFilename, I.orientation, I.copyName
        FROM Adobe_images I
        JOIN AgLibraryFile F ON F.id_local = I.rootFile
        JOIN AgLibraryFolder O ON O.id_local = F.folder
        WHERE I.id_local = ?
    """, (image_id,))
    row = cur.fetchone()
    if not row:
        print(f"No image with id={image_id}")
        return

    iid, folder, name, orientation, copy_name = row
    print("Image:")
    print(f"  id:           {iid}")
    print(f"  file:         {folder or ''}{name or ''}")
    print(f"  orientation:  {orientation or ''}")
    print(f"  copy:         {copy_name or ''}")

    cur.execute("""
        SELECT f.id_local, k.name, f.tl_x, f.tl_y, f.br_x, f.br_y
        FROM AgLibraryFace f
        LEFT JOIN AgLibraryKeywordFace kf ON kf.face = f.id_local
        LEFT JOIN AgLibraryKeyword k ON k.id_local = kf.tag
        WHERE f.image = ?
        ORDER BY f.id_local
    """, (image_id,))
    faces = cur.fetchall()
    if faces:
        print("\n  Faces:")
        print("  id      | top-left        | bottom-right    | name")
        print("  --------+-----------------+-----------------+-----")
        for fid, person, tl_x, tl_y, br_x, br_y in faces:
            print(f"  {fid:7d} | {tl_x:6.3f}, {tl_y:6.3f} | {br_x:6.3f}, {br_y:6.3f} | {person or '[Unnamed]'}")
    else:
        print("\n  (No faces)")

    cur.execute("""
        SELECT k.name, k.keywordType
        FROM AgLibraryKeywordImage ki
        JOIN AgLibraryKeyword k ON k.id_local = ki.tag
        WHERE ki.image = ?
        ORDER BY k.name
    """, (image_id,))
    keywords = cur.fetchall()
    if keywords:
        print("\n  Keywords:")
        for name, kind in keywords:
            suffix = f" ({kind})" if kind else ""
            print(f"    {name}{suffix}")


def list_stacks(conn: sqlite3.Connection):
    cur = conn.cursor()
    cur.execute("""
        SELECT s.stack, s.position, s.image, F.originalFilename
        FROM AgLibraryFolderStackImage s
        JOIN Adobe_images I ON I.id_local = s.image
        JOIN AgLibraryFile F ON F.id_local = I.rootFile
        ORDER BY s.stack, s.position
    """)
    rows = cur.fetchall()
    if not rows:
        print("No stacks found.")
        return

    current = None
    for stack_id, position, image_id, name in rows:
        if stack_id != current:
            print(f"Stack {stack_id}:")
            current = stack_id
        print(f"  {position:3d}. {name or ''} (image {image_id})")


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Query helper for a Lightroom catalog after a face transfer.")
    p.add_argument("--catalog", required=True, help="Path to the .lrcat file")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--people", action="store_true", help="List person keywords with their face counts")
    group.add_argument("--image-id", type=int, help="Show faces and keywords of an image by id")
    group.add_argument("--stacks", action="store_true", help="List stacks and their members")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    db_path = Path(args.catalog).resolve()
    conn = connect_db(db_path)

    try:
        if args.people:
            list_people(conn)
        elif args.image_id is not None:
            show_image(conn, args.image_id)
        elif args.stacks:
            list_stacks(conn)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
