"""Tests for check-in code generation."""

import asyncio
import re

from reunion.registration.artifacts import (
    ArtifactGenerator,
    qr_seed,
    render_qr_png,
    safe_path_part,
)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class TestRendering:
    """Tests for QR rendering helpers."""

    def test_seed(self):
        """Test the encoded string is event code plus mobile."""
        assert qr_seed("Reunion-2026", "555-1") == "Reunion-2026-555-1"

    def test_render_png(self):
        """Test that rendering produces a PNG image."""
        data = render_qr_png("Reunion-2026-555-1")
        assert data.startswith(PNG_SIGNATURE)

    def test_render_is_deterministic(self):
        """Test that the same seed renders the same image."""
        assert render_qr_png("Reunion-2026-555-1") == render_qr_png("Reunion-2026-555-1")

    def test_safe_path_part(self):
        """Test phone numbers are reduced to path-safe characters."""
        assert safe_path_part("+1 (555) 010/99") == "+155501099"
        assert safe_path_part("555-1") == "555-1"
        assert safe_path_part("///") == "unknown"


class TestArtifactGenerator:
    """Tests for ArtifactGenerator."""

    def test_artifact_path(self, storage):
        """Test paths are namespaced by mobile and generation time."""
        generator = ArtifactGenerator(storage, "Reunion-2026", clock=lambda: 1700000000.123)
        path = generator.artifact_path("555-1")
        assert re.fullmatch(r"qrcodes/555-1-1700000000123-[0-9a-f]{8}\.png", path)

    def test_paths_never_repeat(self, storage):
        """Test two generations in the same millisecond get distinct paths."""
        generator = ArtifactGenerator(storage, "Reunion-2026", clock=lambda: 1700000000.0)
        assert generator.artifact_path("555-1") != generator.artifact_path("555-1")

    def test_generate_uploads_png(self, storage):
        """Test that generate stores the image and returns its public URL."""
        generator = ArtifactGenerator(storage, "Reunion-2026")
        url = asyncio.run(generator.generate("555-1"))

        assert len(storage.objects) == 1
        path, (data, content_type) = next(iter(storage.objects.items()))
        assert url == storage.public_url(path)
        assert content_type == "image/png"
        assert data == render_qr_png("Reunion-2026-555-1")
