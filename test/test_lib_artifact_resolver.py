#!/usr/bin/env python3
"""Tests for matchlib/artifact_resolver.py"""

import os
from typing import Any, List, Optional
from unittest.mock import MagicMock, patch

import pytest

from matchlib.artifact_resolver import STITCH, ArtifactResolver, link_or_copy, partial_path, raw_jar_path, resolved_jar_path
from matchlib.constants import ExternalToolError, UnexpectedDownloadError
from matchlib.version_catalog import VersionCatalog


class TestPaths:
    """Tests for workspace path helpers."""

    @pytest.mark.unit
    def test_resolved_jar_path(self) -> None:
        """Test resolved jars use the maven style location."""
        assert resolved_jar_path("/ws", "1.8", "merged") == os.path.join("/ws", "libraries", "com", "mojang", "minecraft-merged", "1.8", "minecraft-merged-1.8.jar")

    @pytest.mark.unit
    def test_raw_jar_path(self) -> None:
        """Test raw jars live under versions/<id>."""
        assert raw_jar_path("/ws", "b1.7.3", "client") == os.path.join("/ws", "versions", "b1.7.3", "client.jar")

    @pytest.mark.unit
    def test_link_or_copy_links(self, temp_dir: str, make_file: Any) -> None:
        """Test a hard link shares the inode."""
        src = make_file(os.path.join(temp_dir, "src.jar"), "jar")
        dest = os.path.join(temp_dir, "dest.jar")
        link_or_copy(src, dest)
        assert os.path.samefile(src, dest)

    @pytest.mark.unit
    def test_link_or_copy_falls_back(self, temp_dir: str, make_file: Any) -> None:
        """Test copying when hard links are refused."""
        src = make_file(os.path.join(temp_dir, "src.jar"), "jar")
        dest = os.path.join(temp_dir, "dest.jar")
        with patch("os.link", side_effect=OSError("cross-device link")):
            link_or_copy(src, dest)
        assert not os.path.samefile(src, dest)
        with open(dest) as f:
            assert f.read() == "jar"
        assert not os.path.exists(partial_path(dest))

    @pytest.mark.unit
    def test_interrupted_copy_leaves_no_jar(self, temp_dir: str, make_file: Any) -> None:
        """Test a copy cut short leaves neither dest nor the temporary file."""
        src = make_file(os.path.join(temp_dir, "src.jar"), "jar")
        dest = os.path.join(temp_dir, "dest.jar")

        def partial_copy(from_path: str, to_path: str) -> None:
            with open(to_path, "w") as f:
                f.write("ja")
            raise KeyboardInterrupt

        with patch("os.link", side_effect=OSError("cross-device link")), patch("matchlib.artifact_resolver.shutil.copyfile", side_effect=partial_copy):
            with pytest.raises(KeyboardInterrupt):
                link_or_copy(src, dest)
        assert not os.path.exists(dest)
        assert not os.path.exists(partial_path(dest))


class TestRawJars:
    """Tests for raw jar downloads."""

    @pytest.mark.unit
    def test_downloads_client_and_server(self, match_env: Any) -> None:
        """Test both raw jars are fetched to versions/<id>."""
        match_env.add_version("1.2.5", server=True)
        ws = match_env.build()
        files = ws.resolver.raw_jars("1.2.5")
        assert set(files) == {"client", "server"}
        assert files["client"] == raw_jar_path(ws.root, "1.2.5", "client")
        assert os.path.exists(files["server"])

    @pytest.mark.unit
    def test_non_jar_downloads_ignored(self, match_env: Any) -> None:
        """Test mappings and other non-jar downloads are not fetched."""
        match_env.add_version(
            "1.14.4",
            downloads={"client": {"url": "https://example.invalid/client.jar"}, "client_mappings": {"url": "https://example.invalid/client.txt"}},
        )
        ws = match_env.build()
        assert set(ws.resolver.raw_jars("1.14.4")) == {"client"}
        assert match_env.downloader.fetched_urls == ["https://example.invalid/client.jar"]

    @pytest.mark.unit
    def test_unexpected_jar_key(self, match_env: Any) -> None:
        """Test an unclassifiable jar download raises."""
        match_env.add_version("x", downloads={"client": {"url": "https://e/c.jar"}, "windows_server": {"url": "https://e/w.jar"}})
        ws = match_env.build()
        with pytest.raises(UnexpectedDownloadError, match="windows_server"):
            ws.resolver.raw_jars("x")

    @pytest.mark.unit
    def test_no_jar(self, match_env: Any) -> None:
        """Test a version without any jar raises."""
        match_env.add_version("x", client=False)
        ws = match_env.build()
        with pytest.raises(UnexpectedDownloadError, match="at least one jar"):
            ws.resolver.raw_jars("x")


class TestResolveJar:
    """Tests for resolve_jar."""

    @pytest.mark.unit
    def test_client_is_linked(self, match_env: Any) -> None:
        """Test the client jar is hard-linked into libraries/."""
        match_env.add_version("1.0")
        ws = match_env.build()
        jar = ws.resolver.resolve_jar("1.0", "client")
        assert jar == resolved_jar_path(ws.root, "1.0", "client")
        assert os.path.samefile(jar, raw_jar_path(ws.root, "1.0", "client"))

    @pytest.mark.unit
    def test_missing_side(self, match_env: Any) -> None:
        """Test a side without raw jar yields None."""
        match_env.add_version("1.0")
        ws = match_env.build()
        assert ws.resolver.resolve_jar("1.0", "server") is None
        assert not os.path.exists(resolved_jar_path(ws.root, "1.0", "server"))

    @pytest.mark.unit
    def test_unknown_side(self, match_env: Any) -> None:
        """Test an unknown side is rejected."""
        match_env.add_version("1.0")
        ws = match_env.build()
        with pytest.raises(ValueError, match="Unknown side"):
            ws.resolver.resolve_jar("1.0", "bedrock")

    @pytest.mark.unit
    def test_merged_requires_shared_mappings(self, match_env: Any) -> None:
        """Test no merged jar without shared mappings, even with both jars."""
        match_env.add_version("1.2.5", server=True, shared_mappings=False)
        ws = match_env.build()
        assert ws.resolver.resolve_jar("1.2.5", "merged") is None
        assert match_env.merges == []

    @pytest.mark.unit
    def test_merged_requires_both_jars(self, match_env: Any) -> None:
        """Test no merged jar when the server jar is missing."""
        match_env.add_version("1.3", shared_mappings=True)
        ws = match_env.build()
        assert ws.resolver.resolve_jar("1.3", "merged") is None

    @pytest.mark.unit
    def test_merged_once(self, match_env: Any) -> None:
        """Test the merged jar is produced once and then reused."""
        match_env.add_version("1.3", server=True, shared_mappings=True)
        ws = match_env.build()
        first = ws.resolver.resolve_jar("1.3", "merged")
        second = ws.resolver.resolve_jar("1.3", "merged")
        assert first == second == resolved_jar_path(ws.root, "1.3", "merged")
        assert match_env.merges == [(raw_jar_path(ws.root, "1.3", "client"), raw_jar_path(ws.root, "1.3", "server"), first)]

    @pytest.mark.unit
    def test_existing_jar_kept(self, match_env: Any, make_file: Any) -> None:
        """Test an existing resolved jar is trusted as is."""
        match_env.add_version("1.0")
        ws = match_env.build()
        dest = make_file(resolved_jar_path(ws.root, "1.0", "client"), "old")
        assert ws.resolver.resolve_jar("1.0", "client") == dest
        with open(dest) as f:
            assert f.read() == "old"


class TestResolveLibraries:
    """Tests for resolve_libraries."""

    @pytest.mark.unit
    def test_order_and_duplicates(self, match_env: Any) -> None:
        """Test library paths keep declaration order without duplicates."""
        ws = match_env.build()
        info = {
            "libraries": [
                {"name": "a", "downloads": {"artifact": {"path": "org/a/a.jar", "url": "https://l/a.jar"}}},
                {"name": "natives", "downloads": {"classifiers": {}}},
                {"name": "legacy"},
                {"name": "b", "downloads": {"artifact": {"path": "org/b/b.jar", "url": "https://l/b.jar"}}},
                {"name": "a again", "downloads": {"artifact": {"path": "org/a/a.jar", "url": "https://l/a.jar"}}},
            ]
        }
        libs = ws.resolver.resolve_libraries(info)
        expected = [os.path.join(ws.root, "libraries", "org", "a", "a.jar"), os.path.join(ws.root, "libraries", "org", "b", "b.jar")]
        assert libs == expected
        assert match_env.downloader.bulk_calls == [[("https://l/a.jar", expected[0]), ("https://l/b.jar", expected[1])]]
        assert all(os.path.exists(p) for p in libs)

    @pytest.mark.unit
    def test_no_libraries(self, match_env: Any) -> None:
        """Test a launcher document without libraries."""
        ws = match_env.build()
        assert ws.resolver.resolve_libraries({"id": "rd-132211"}) == []


def stitch_run(returncode: int = 0, content: str = "merged", interrupt: bool = False) -> Any:
    """subprocess.run stand-in writing the mergeJar output argument."""

    def run(cmd: List[str], **kwargs: Any) -> Any:
        with open(cmd[6], "w", encoding="utf-8") as f:
            f.write(content)
        if interrupt:
            raise SystemExit(130)
        return MagicMock(returncode=returncode)

    return run


class TestMergeJars:
    """Tests for the stitch invocation."""

    def resolver(self, workspace: str, downloader: Any, catalog_dir: Optional[str] = None) -> ArtifactResolver:
        return ArtifactResolver(workspace, VersionCatalog(catalog_dir or workspace), downloader=downloader, bulk_downloader=downloader.bulk, java="/opt/jdk/bin/java")

    @pytest.mark.unit
    def test_command(self, match_env: Any) -> None:
        """Test stitch is fetched and called with the merge flags."""
        resolver = self.resolver(match_env.workspace, match_env.downloader)
        dest = os.path.join(match_env.workspace, "m.jar")
        with patch("matchlib.artifact_resolver.subprocess.run", side_effect=stitch_run()) as mock_run:
            resolver.merge_jars("c.jar", "s.jar", dest)

        stitch = os.path.join(match_env.workspace, "libraries", "net", "fabricmc", "stitch", "0.6.1", "stitch-0.6.1-all.jar")
        mock_run.assert_called_once_with(
            ["/opt/jdk/bin/java", "-jar", stitch, "mergeJar", "c.jar", "s.jar", dest + ".part.jar", "--removeSnowman", "--syntheticparams"],
            check=False,
        )
        assert match_env.downloader.fetched_urls == ["https://maven.fabricmc.net/net/fabricmc/stitch/0.6.1/stitch-0.6.1-all.jar"]
        with open(dest, encoding="utf-8") as f:
            assert f.read() == "merged"
        assert not os.path.exists(partial_path(dest))

    @pytest.mark.unit
    def test_failure_removes_output(self, match_env: Any) -> None:
        """Test a failed merge leaves no partial jar behind."""
        resolver = self.resolver(match_env.workspace, match_env.downloader)
        dest = os.path.join(match_env.workspace, "out", "m.jar")
        os.makedirs(os.path.dirname(dest))
        with patch("matchlib.artifact_resolver.subprocess.run", side_effect=stitch_run(returncode=1, content="partial")):
            with pytest.raises(ExternalToolError, match="exit code 1"):
                resolver.merge_jars("c.jar", "s.jar", dest)
        assert not os.path.exists(dest)
        assert not os.path.exists(partial_path(dest))

    @pytest.mark.unit
    def test_no_output(self, match_env: Any) -> None:
        """Test a zero exit without a written jar is an error."""
        resolver = self.resolver(match_env.workspace, match_env.downloader)
        dest = os.path.join(match_env.workspace, "m.jar")
        with patch("matchlib.artifact_resolver.subprocess.run", return_value=MagicMock(returncode=0)):
            with pytest.raises(ExternalToolError, match="no output"):
                resolver.merge_jars("c.jar", "s.jar", dest)
        assert not os.path.exists(dest)

    @pytest.mark.unit
    def test_interrupted_merge_is_redone(self, match_env: Any) -> None:
        """Test an interrupted merge leaves nothing that a later run would reuse."""
        match_env.add_version("1.3", server=True, shared_mappings=True)
        resolver = self.resolver(match_env.workspace, match_env.downloader, match_env.catalog_builder.data_dir)
        dest = resolved_jar_path(match_env.workspace, "1.3", "merged")

        with patch("matchlib.artifact_resolver.subprocess.run", side_effect=stitch_run(content="PARTIAL", interrupt=True)):
            with pytest.raises(SystemExit):
                resolver.resolve_jar("1.3", "merged")
        assert not os.path.exists(dest)
        assert not os.path.exists(partial_path(dest))

        with patch("matchlib.artifact_resolver.subprocess.run", side_effect=stitch_run()) as mock_run:
            assert resolver.resolve_jar("1.3", "merged") == dest
        assert mock_run.call_count == 1
        with open(dest, encoding="utf-8") as f:
            assert f.read() == "merged"

    @pytest.mark.unit
    def test_java_not_runnable(self, match_env: Any) -> None:
        """Test an OSError from the java launch is reported as tool error."""
        resolver = self.resolver(match_env.workspace, match_env.downloader)
        with patch("matchlib.artifact_resolver.subprocess.run", side_effect=FileNotFoundError("java")):
            with pytest.raises(ExternalToolError, match="Cannot run"):
                resolver.merge_jars("c.jar", "s.jar", "m.jar")

    @pytest.mark.unit
    def test_java_missing(self, match_env: Any) -> None:
        """Test a missing java runtime raises before running anything."""
        resolver = ArtifactResolver(match_env.workspace, VersionCatalog(match_env.workspace), downloader=match_env.downloader)
        missing = MagicMock()
        missing.is_found.return_value = False
        missing.error_message = "java not found (set JAVA_HOME or add java to PATH)"
        with patch("matchlib.artifact_resolver.find_java", return_value=missing):
            with pytest.raises(ExternalToolError, match="java not found"):
                resolver.merge_jars("c.jar", "s.jar", "m.jar")

    @pytest.mark.unit
    def test_stitch_coordinates(self) -> None:
        """Test the pinned merge tool."""
        assert (STITCH.group, STITCH.artifact, STITCH.version, STITCH.classifier) == ("net.fabricmc", "stitch", "0.6.1", "all")
