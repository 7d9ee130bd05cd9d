# Buckets used when organizing output by file type.
CATEGORY_EXTENSIONS = {
    "Images": [".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff", ".webp", ".heic", ".svg"],
    "Documents": [".pdf", ".doc", ".docx", ".txt", ".md", ".rtf", ".odt", ".epub", ".html", ".htm",
                  ".xls", ".xlsx", ".ods", ".csv", ".tsv", ".ppt", ".pptx", ".odp"],
    "Audios": [".mp3", ".wav", ".flac", ".ogg", ".m4a", ".aac", ".wma", ".opus", ".dsf"],
    "Videos": [".mp4", ".mkv", ".avi", ".mov", ".wmv", ".webm", ".flv"],
}
OTHER_CATEGORY = "Others"

EXTENSION_MAP = {
    ext: category
    for category, extensions in CATEGORY_EXTENSIONS.items()
    for ext in extensions
}


def category_for(name: str) -> str:
    """Bucket name for a file name, by its lower-cased extension."""
    dot = name.rfind(".")
    if dot <= 0:
        return OTHER_CATEGORY
    return EXTENSION_MAP.get(name[dot:].lower(), OTHER_CATEGORY)
