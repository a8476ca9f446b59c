import asyncio
import configparser
import logging
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from click.testing import CliRunner

from ncmconv import NcmConverter, WatchHandle
from ncmconv.cli import main
from ncmconv.cli.cli import watch_directory
from ncmconv.decoder import ConversionStatus, NcmDecoder, NcmTranscoder

from .ncm_fixtures import FLAC_AUDIO, build_container, list_files


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.tmp_path = Path(self.tmpdir.name)
        self.music_path = self.tmp_path / "music"
        self.music_path.mkdir()
        self.runner = CliRunner()

    def tearDown(self) -> None:
        root_logger = logging.getLogger("ncmconv")
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        self.tmpdir.cleanup()

    def write_ncm(self, name: str, data: bytes = None) -> Path:
        path = self.music_path / name
        path.write_bytes(build_container(FLAC_AUDIO) if data is None else data)
        return path

    def invoke(self, *args: str):
        return self.runner.invoke(main, list(args), catch_exceptions=False)

    def test_converts_file(self):
        input_path = self.write_ncm("song.ncm")

        result = self.invoke("-n", str(input_path))

        self.assertEqual(result.exit_code, 0)
        self.assertEqual((self.music_path / "song.flac").read_bytes(), FLAC_AUDIO)
        self.assertIn("Finished with 0 error(s)", result.output)

    def test_directory_and_output_path(self):
        self.write_ncm("a.ncm")
        self.write_ncm("b.NCM")
        (self.music_path / "cover.jpg").write_bytes(b"jpeg")
        out_path = self.tmp_path / "out"

        result = self.invoke("-n", "-o", str(out_path), str(self.music_path))

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(list_files(out_path), ["a.flac", "b.flac"])

    def test_errors_are_counted(self):
        self.write_ncm("good.ncm")
        bad_path = self.write_ncm("bad.ncm", b"not an ncm file")

        result = self.invoke("-n", "--no-exceptions", str(self.music_path))

        self.assertEqual(result.exit_code, 0)
        self.assertIn(f'Error converting "{bad_path}"', result.output)
        self.assertIn("Finished with 1 error(s)", result.output)
        self.assertTrue((self.music_path / "good.flac").exists())

    def test_read_paths_as_txt(self):
        input_path = self.write_ncm("listed.ncm")
        txt_path = self.tmp_path / "paths.txt"
        txt_path.write_text(f"\n{input_path}\n\n", encoding="utf-8")

        result = self.invoke("-n", "-r", str(txt_path))

        self.assertEqual(result.exit_code, 0)
        self.assertTrue((self.music_path / "listed.flac").exists())

    def test_requires_paths_or_watch(self):
        result = self.runner.invoke(main, ["-n"])
        self.assertEqual(result.exit_code, 2)

    def test_config_file_defaults_are_written(self):
        config_path = self.tmp_path / "config" / "config.ini"
        input_path = self.write_ncm("song.ncm")

        result = self.invoke("--config-path", str(config_path), str(input_path))

        self.assertEqual(result.exit_code, 0)
        config = configparser.ConfigParser(interpolation=None)
        config.read(config_path, encoding="utf-8")
        self.assertEqual(config["ncmconv"]["ffmpeg_path"], "ffmpeg")
        self.assertEqual(config["ncmconv"]["output_extension"], ".flac")
        self.assertEqual(config["ncmconv"]["output_path"], "null")
        self.assertNotIn("paths", config["ncmconv"])

    def test_config_file_values_are_used(self):
        config_path = self.tmp_path / "config.ini"
        out_path = self.tmp_path / "from-config"
        config_path.write_text(
            "[ncmconv]\n"
            f"output_path = {out_path}\n"
            "output_extension = .fla\n"
            "unknown_option = 1\n",
            encoding="utf-8",
        )
        input_path = self.write_ncm("song.ncm")

        result = self.invoke("--config-path", str(config_path), str(input_path))

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(list_files(out_path), ["song.fla"])
        self.assertNotIn("unknown_option", config_path.read_text(encoding="utf-8"))

    def test_command_line_overrides_config_file(self):
        config_path = self.tmp_path / "config.ini"
        config_path.write_text(
            "[ncmconv]\noutput_extension = .fla\n", encoding="utf-8"
        )
        input_path = self.write_ncm("song.ncm")

        result = self.invoke(
            "--config-path",
            str(config_path),
            "--output-extension",
            ".flac",
            str(input_path),
        )

        self.assertEqual(result.exit_code, 0)
        self.assertTrue((self.music_path / "song.flac").exists())

    def test_config_file_survives_repeated_runs(self):
        config_path = self.tmp_path / "config.ini"
        input_path = self.write_ncm("song.ncm")

        for _ in range(2):
            result = self.invoke("--config-path", str(config_path), str(input_path))
            self.assertEqual(result.exit_code, 0)

        config = configparser.ConfigParser(interpolation=None)
        config.read(config_path, encoding="utf-8")
        self.assertEqual(config["ncmconv"]["no_exceptions"], "false")
        self.assertNotIn("read_paths_as_txt", config["ncmconv"])
        self.assertNotIn("no_config_file", config["ncmconv"])
        self.assertNotIn("sentinel", config_path.read_text(encoding="utf-8"))


class WatchDirectoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = TemporaryDirectory()
        self.watch_path = Path(self.tmpdir.name)
        self.events = []
        self.converter = NcmConverter(
            NcmDecoder(NcmTranscoder()),
            listeners=[self.events.append],
        )
        self.handle = WatchHandle()

    def tearDown(self) -> None:
        self.handle.stop()
        self.tmpdir.cleanup()

    def start_watching(self) -> asyncio.Task:
        return asyncio.create_task(
            watch_directory(
                self.converter,
                str(self.watch_path),
                workers=2,
                no_exceptions=True,
                watch_handle=self.handle,
            )
        )

    def finished_events(self) -> list:
        return [e for e in self.events if e.status != ConversionStatus.PROCESSING]

    async def wait_for_active(self) -> None:
        while self.handle.active is None:
            await asyncio.sleep(0.01)

    def test_converts_dropped_files(self):
        async def run() -> int:
            task = self.start_watching()
            await self.wait_for_active()

            (self.watch_path / "song.ncm").write_bytes(build_container(FLAC_AUDIO))
            (self.watch_path / "bad.ncm").write_bytes(b"not an ncm file")

            loop = asyncio.get_running_loop()
            deadline = loop.time() + 15
            while len(self.finished_events()) < 2 and loop.time() < deadline:
                await asyncio.sleep(0.05)

            self.handle.stop()
            return await asyncio.wait_for(task, timeout=10)

        error_count = asyncio.run(run())

        self.assertEqual(error_count, 1)
        self.assertEqual((self.watch_path / "song.flac").read_bytes(), FLAC_AUDIO)
        self.assertEqual(
            {e.status for e in self.finished_events()},
            {ConversionStatus.COMPLETED, ConversionStatus.ERROR},
        )
        self.assertEqual(len({e.id for e in self.events}), 2)
        self.assertNotIn("1/1", {e.id for e in self.events})
        self.assertIsNone(self.handle.active)

    def test_cancel_stops_watcher(self):
        async def run() -> None:
            task = self.start_watching()
            await self.wait_for_active()
            watcher = self.handle.active

            task.cancel()
            with self.assertRaises(asyncio.CancelledError):
                await task
            self.assertFalse(watcher.is_running)

        asyncio.run(run())

        self.assertIsNone(self.handle.active)
