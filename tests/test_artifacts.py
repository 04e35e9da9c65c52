"""
Tests for artifact publishing.
"""

import pytest

from chatsync.exceptions import ArtifactError, RemoteRejectedError
from chatsync.models.export import CodeItem, CodeItemKind
from chatsync.sync.artifacts import ArtifactPublisher, artifact_filename
from conftest import make_message


def artifact(identity="greeter-abc", language="python", content="print('hi')"):
    return CodeItem(
        kind=CodeItemKind.ARTIFACT,
        language=language,
        content=content,
        title="Greeter",
        identity=identity,
    )


BLOCK = CodeItem(
    kind=CodeItemKind.MARKDOWN_BLOCK,
    language="bash",
    content="ls",
    title="Code block 1",
    identity="00000001-block-1",
)


class TestArtifactFilename:
    """Tests for artifact file names."""

    def test_known_language_extension(self):
        assert artifact_filename("greeter-abc", "python") == "greeter-abc.py"

    def test_unknown_language_used_as_extension(self):
        assert artifact_filename("proto-1", "proto") == "proto-1.proto"

    def test_unsafe_characters_are_replaced(self):
        assert artifact_filename("../etc/passwd", "text") == "etc_passwd.txt"


class TestArtifactPublisher:
    """Tests for uploading artifacts once."""

    def test_uploads_and_records_artifacts(self, store, ticket_client, tmp_path):
        """Test that artifacts are saved, uploaded and recorded."""
        publisher = ArtifactPublisher(ticket_client, store, tmp_path / "artifacts")
        message = make_message(1, code_items=(artifact(), BLOCK))

        uploaded = publisher.publish("c1", 42, message)

        assert uploaded == 1
        ticket_id, path, description = ticket_client.uploads[0]
        assert ticket_id == 42
        assert path == tmp_path / "artifacts" / "c1" / "greeter-abc.py"
        assert path.read_text(encoding="utf-8") == "print('hi')"
        assert description == "Artifact: Greeter"
        assert store.has_attachment("c1", "greeter-abc")

    def test_recorded_artifacts_are_skipped(self, store, ticket_client, tmp_path):
        """Test that a second publish of the same artifact uploads nothing."""
        publisher = ArtifactPublisher(ticket_client, store, tmp_path)
        message = make_message(1, code_items=(artifact(),))

        publisher.publish("c1", 42, message)
        uploaded = publisher.publish("c1", 42, message)

        assert uploaded == 0
        assert len(ticket_client.uploads) == 1

    def test_failed_upload_is_not_recorded(self, store, tmp_path):
        """Test that the ledger only holds successful uploads."""

        class FailingClient:
            def upload_attachment(self, ticket_id, local_path, description=None):
                raise RemoteRejectedError(413, "too large")

        publisher = ArtifactPublisher(FailingClient(), store, tmp_path)

        with pytest.raises(RemoteRejectedError):
            publisher.publish("c1", 42, make_message(1, code_items=(artifact(),)))

        assert not store.has_attachment("c1", "greeter-abc")

    def test_unwritable_directory_raises_artifact_error(
        self, store, ticket_client, tmp_path
    ):
        """Test that local write failures surface as ArtifactError."""
        occupied = tmp_path / "artifacts"
        occupied.write_text("not a directory")
        publisher = ArtifactPublisher(ticket_client, store, occupied)

        with pytest.raises(ArtifactError):
            publisher.publish("c1", 42, make_message(1, code_items=(artifact(),)))

        assert ticket_client.uploads == []
        assert not store.has_attachment("c1", "greeter-abc")
