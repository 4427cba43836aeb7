"""
Configuration, logging setup and shared dependencies (HTTP client) for the
gallery v2 query layer.

Settings for the shared client come from a JSON file, read once before the
client is first created:

    get_client_settings(Path("gallery.json"))
    client = get_http_client()

Without a file the defaults in ``ClientSettings`` apply.
"""
