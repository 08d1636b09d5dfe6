"""File operations for the book manager.

Submodules:
    relocate -- Destination naming from the "{title} - {author} ({year})"
                template (literal substitution, source extension kept, flat
                output dir), rename-or-copy move that refuses to overwrite
                and verifies contents on cross-device copies, and optional
                chown applied only when both uid and gid are configured.
                Missing sources raise SourceMissingError, occupied
                destinations raise DestinationExistsError.
"""
