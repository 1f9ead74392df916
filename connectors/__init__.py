"""
connectors — Dropbox API access.

Provides:
  • ``DropboxClient`` — metadata, listing, cursors, download / upload
  • Typed request arguments and response models
"""
