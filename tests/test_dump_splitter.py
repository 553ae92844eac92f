"""
Unit tests for dump_splitter.py
"""

import gzip
import io
from pathlib import Path
from unittest import mock

import pytest

from mysql_utils.dump_splitter import DumpSplitter, iter_dump_lines, open_dump
from mysql_utils.errors import OutputError
from mysql_utils.filters import TableFilter


def table_section(table, rows=1):
    """Build the lines mysqldump writes for one table."""
    lines = [
        "--\n",
        f"-- Table structure for table `{table}`\n",
        "--\n",
        "\n",
        f"DROP TABLE IF EXISTS `{table}`;\n",
        f"CREATE TABLE `{table}` (\n",
        "  `id` int NOT NULL,\n",
        "  PRIMARY KEY (`id`)\n",
        ");\n",
        "\n",
        "--\n",
        f"-- Dumping data for table `{table}`\n",
        "--\n",
        "\n",
        f"LOCK TABLES `{table}` WRITE;\n",
    ]
    for i in range(1, rows + 1):
        lines.append(f"INSERT INTO `{table}` VALUES ({i});\n")
    lines.append("UNLOCK TABLES;\n")
    return lines


HEADER = [
    "-- MySQL dump 10.13\n",
    "/*!40101 SET NAMES utf8mb4 */;\n",
    "\n",
]


@pytest.fixture
def dump_lines():
    """A dump with three tables."""
    return HEADER + table_section("users", 2) + table_section("orders") + table_section("products")


class TestMatchBoundary:
    """Tests for match_boundary method."""

    @pytest.mark.parametrize("line,expected", [
        ("-- Table structure for table `users`\n", "users"),
        ("-- Dumping data for table `users`\n", "users"),
        ("CREATE TABLE IF NOT EXISTS `users` (\n", "users"),
        ("CREATE TABLE `users` (\n", "users"),
        ("DROP TABLE IF EXISTS `users`;\n", "users"),
        ("CREATE TABLE `weird name` (\n", "weird name"),
    ])
    def test_markers(self, line, expected):
        """Test every boundary marker is recognised."""
        assert DumpSplitter.match_boundary(line) == expected

    @pytest.mark.parametrize("line", [
        "INSERT INTO `users` VALUES (1);\n",
        "LOCK TABLES `users` WRITE;\n",
        "  CREATE TABLE `users` (\n",
        "-- Table structure for table users\n",
        "create table `users` (\n",
        "\n",
    ])
    def test_non_markers(self, line):
        """Test other lines are not boundaries."""
        assert DumpSplitter.match_boundary(line) is None


class TestSplit:
    """Tests for split method."""

    def test_one_file_per_table(self, tmp_path, dump_lines):
        """Test each table gets its own file named after the table."""
        result = DumpSplitter(output_dir=tmp_path).split(dump_lines)

        assert result.tables_written == ["users", "orders", "products"]
        assert result.tables_skipped == []
        assert sorted(p.name for p in tmp_path.iterdir()) == ["orders", "products", "users"]

    def test_header_lines_discarded(self, tmp_path, dump_lines):
        """Test lines before the first table are not written anywhere."""
        DumpSplitter(output_dir=tmp_path).split(dump_lines)

        for path in tmp_path.iterdir():
            assert "-- MySQL dump" not in path.read_text()

    def test_schema_and_data_in_same_file(self, tmp_path, dump_lines):
        """Test the structure and data sections of a table share one file, in order."""
        DumpSplitter(output_dir=tmp_path).split(dump_lines)

        content = (tmp_path / "users").read_text()
        assert content.startswith("-- Table structure for table `users`\n")
        assert content.index("CREATE TABLE `users`") < content.index("-- Dumping data for table `users`")
        assert content.index("-- Dumping data for table `users`") < content.index("INSERT INTO `users` VALUES (2);")
        assert "orders" not in content

    def test_lines_written_unmodified(self, tmp_path):
        """Test lines are copied byte for byte, including the boundary line."""
        lines = ["CREATE TABLE `t` (\n", "  `x` text  \n", "INSERT INTO `t` VALUES ('a\\nb');\n"]

        result = DumpSplitter(output_dir=tmp_path).split(lines)

        assert (tmp_path / "t").read_text() == "".join(lines)
        assert result.lines_written == 3

    def test_recurring_table_not_reopened(self, tmp_path):
        """Test a table seen again appends to the current file instead of truncating."""
        lines = [
            "DROP TABLE IF EXISTS `t`;\n",
            "CREATE TABLE `t` (\n",
            ");\n",
            "-- Dumping data for table `t`\n",
            "INSERT INTO `t` VALUES (1);\n",
        ]
        with mock.patch('builtins.open', wraps=open) as mock_open:
            result = DumpSplitter(output_dir=tmp_path).split(lines)

        assert mock_open.call_count == 1
        assert result.tables_written == ["t"]
        assert (tmp_path / "t").read_text() == "".join(lines)

    def test_output_in_current_directory(self, tmp_path, monkeypatch, dump_lines):
        """Test files are written to the working directory without output_dir."""
        monkeypatch.chdir(tmp_path)

        DumpSplitter().split(dump_lines)

        assert (tmp_path / "users").exists()

    def test_creates_nested_output_dir(self, tmp_path, dump_lines):
        """Test the output directory is created with its parents."""
        output_dir = tmp_path / "a" / "b" / "c"

        DumpSplitter(output_dir=output_dir).split(dump_lines)

        assert (output_dir / "orders").exists()

    def test_output_dir_creation_failure(self, tmp_path):
        """Test a directory that cannot be created aborts before reading input."""
        blocker = tmp_path / "file"
        blocker.write_text("not a dir")
        lines = mock.MagicMock()

        with pytest.raises(OutputError):
            DumpSplitter(output_dir=blocker / "sub").split(lines)

        lines.__iter__.assert_not_called()

    def test_file_open_failure_is_fatal(self, tmp_path, dump_lines):
        """Test a table file that cannot be opened aborts the whole run."""
        (tmp_path / "orders").mkdir()

        with pytest.raises(OutputError):
            DumpSplitter(output_dir=tmp_path, overwrite=True).split(dump_lines)

        assert (tmp_path / "users").exists()
        assert not (tmp_path / "products").exists()

    def test_output_error_status(self):
        """Test OutputError reports the I/O code."""
        assert OutputError.status == 500


class TestFiltering:
    """Tests for include/exclude filtering while splitting."""

    def test_include_names(self, tmp_path, dump_lines):
        """Test only included tables are written."""
        splitter = DumpSplitter(
            table_filter=TableFilter(include_names=["orders"]),
            output_dir=tmp_path
        )

        result = splitter.split(dump_lines)

        assert result.tables_written == ["orders"]
        assert result.tables_skipped == ["users", "products"]
        assert [p.name for p in tmp_path.iterdir()] == ["orders"]

    def test_excluded_lines_not_written_to_previous_table(self, tmp_path, dump_lines):
        """Test lines of a skipped table do not leak into the previous file."""
        splitter = DumpSplitter(
            table_filter=TableFilter(exclude_names=["orders"]),
            output_dir=tmp_path
        )

        splitter.split(dump_lines)

        assert "orders" not in (tmp_path / "users").read_text()
        assert "orders" not in (tmp_path / "products").read_text()
        assert not (tmp_path / "orders").exists()

    def test_exclude_pattern_wins(self, tmp_path, dump_lines):
        """Test an excluded table is never written even when included."""
        splitter = DumpSplitter(
            table_filter=TableFilter(include_patterns=["."], exclude_patterns=["^prod"]),
            output_dir=tmp_path
        )

        result = splitter.split(dump_lines)

        assert "products" in result.tables_skipped
        assert not (tmp_path / "products").exists()

    def test_existing_file_not_overwritten(self, tmp_path, dump_lines):
        """Test an existing file is kept when overwrite is off."""
        (tmp_path / "users").write_text("keep me\n")

        result = DumpSplitter(output_dir=tmp_path).split(dump_lines)

        assert (tmp_path / "users").read_text() == "keep me\n"
        assert result.tables_skipped == ["users"]
        assert result.tables_written == ["orders", "products"]

    def test_existing_file_overwritten(self, tmp_path, dump_lines):
        """Test an existing file is truncated when overwrite is on."""
        (tmp_path / "users").write_text("old\n")

        DumpSplitter(output_dir=tmp_path, overwrite=True).split(dump_lines)

        content = (tmp_path / "users").read_text()
        assert "old" not in content
        assert "INSERT INTO `users`" in content


class TestStopAfter:
    """Tests for stop_after_table and stop_after_pattern."""

    def test_stop_after_table(self, tmp_path, dump_lines):
        """Test nothing after the named table is written."""
        result = DumpSplitter(output_dir=tmp_path, stop_after_table="orders").split(dump_lines)

        assert result.stopped_after == "orders"
        assert result.tables_written == ["users", "orders"]
        assert not (tmp_path / "products").exists()
        assert "UNLOCK TABLES" in (tmp_path / "orders").read_text()

    def test_stop_after_pattern(self, tmp_path, dump_lines):
        """Test stopping at the first table matching a pattern."""
        result = DumpSplitter(output_dir=tmp_path, stop_after_pattern="^us").split(dump_lines)

        assert result.stopped_after == "users"
        assert result.tables_written == ["users"]

    def test_remaining_input_not_read(self, tmp_path, dump_lines):
        """Test the scan stops consuming input at the boundary."""
        consumed = []

        def lines():
            for line in dump_lines:
                consumed.append(line)
                yield line

        DumpSplitter(output_dir=tmp_path, stop_after_table="users").split(lines())

        assert DumpSplitter.match_boundary(consumed[-1]) == "orders"
        assert len(consumed) < len(dump_lines)

    def test_stop_after_last_table(self, tmp_path, dump_lines):
        """Test stopping after the last table processes the whole input."""
        result = DumpSplitter(output_dir=tmp_path, stop_after_table="products").split(dump_lines)

        assert result.stopped_after is None
        assert result.tables_written == ["users", "orders", "products"]

    def test_stop_after_skipped_table(self, tmp_path, dump_lines):
        """Test the stop condition applies to filtered-out tables too."""
        splitter = DumpSplitter(
            table_filter=TableFilter(exclude_names=["users"]),
            output_dir=tmp_path,
            stop_after_table="users"
        )

        result = splitter.split(dump_lines)

        assert result.stopped_after == "users"
        assert result.tables_written == []


class TestReadingDumps:
    """Tests for open_dump and iter_dump_lines."""

    def test_open_plain(self, tmp_path):
        path = tmp_path / "dump.sql"
        path.write_text("CREATE TABLE `t` (\n")
        with open_dump(path) as f:
            assert f.read() == "CREATE TABLE `t` (\n"

    def test_open_gzip(self, tmp_path):
        """Test .gz dumps are decompressed."""
        path = tmp_path / "dump.sql.gz"
        with gzip.open(path, 'wt', encoding='utf-8') as f:
            f.write("CREATE TABLE `t` (\n")

        with open_dump(path) as f:
            assert f.read() == "CREATE TABLE `t` (\n"

    def test_iter_multiple_files(self, tmp_path):
        """Test files are read one after another."""
        a = tmp_path / "a.sql"
        b = tmp_path / "b.sql"
        a.write_text("1\n2\n")
        b.write_text("3\n")

        assert list(iter_dump_lines([a, b])) == ["1\n", "2\n", "3\n"]

    def test_iter_stdin(self):
        """Test no paths reads standard input."""
        with mock.patch('sys.stdin', io.StringIO("x\ny\n")):
            assert list(iter_dump_lines([])) == ["x\n", "y\n"]

    def test_split_gzip_dump(self, tmp_path, dump_lines):
        """Test splitting a compressed dump end to end."""
        path = tmp_path / "dump.sql.gz"
        with gzip.open(path, 'wt', encoding='utf-8') as f:
            f.writelines(dump_lines)
        output_dir = tmp_path / "out"

        result = DumpSplitter(output_dir=output_dir).split(iter_dump_lines([path]))

        assert result.tables_written == ["users", "orders", "products"]
        assert Path(output_dir / "users").read_text().count("INSERT INTO") == 2
