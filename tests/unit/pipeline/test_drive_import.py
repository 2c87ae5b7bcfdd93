"""
Tests for importing Drive folder images into a draft (Drive API faked).
"""

from catalog_draft_builder.core.errors import IngestError
from catalog_draft_builder.pipeline.drive_import import import_drive_folder


class FakeDrive:
    def __init__(self, files, contents):
        self.files = files
        self.contents = contents
        self.listed = []

    def list_image_files(self, folder_id):
        self.listed.append(folder_id)
        return self.files

    def download_bytes(self, file_meta):
        data = self.contents[file_meta["id"]]
        if isinstance(data, Exception):
            raise data
        return data


def test_import_drive_folder(builder, png_bytes, jpeg_bytes):
    drive = FakeDrive(
        files=[
            {"id": "1", "name": "front.png", "mimeType": "image/png"},
            {"id": "2", "name": "huge.jpg", "mimeType": "image/jpeg"},
            {"id": "3", "name": "side", "mimeType": "image/jpeg"},
        ],
        contents={"1": png_bytes, "2": IngestError("too big"), "3": jpeg_bytes},
    )

    added = import_drive_folder(builder, drive, "folder-1")

    assert drive.listed == ["folder-1"]
    assert len(added) == 2
    assert builder.draft.gallery == added
    assert added[1].startswith("data:image/jpeg;base64,")
    assert builder.draft.primary_image == added[0]
