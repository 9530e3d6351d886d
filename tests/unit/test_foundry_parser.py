
import unittest
import tempfile
from pathlib import Path

from src.compiler.errors import ParseConfigError
from src.compiler.foundry_parser import FoundryConfigParser, parse_foundry_config


class TestFoundryConfigParser(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, name: str, content: str) -> Path:
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def test_parse_basic_config(self):
        self.write("foundry.toml", '[profile.default]\nsrc = "source"\ntest = "tests"\nout = "build"\nlibs = ["lib", "node_modules"]\n')

        layout = parse_foundry_config(self.root)

        self.assertEqual(layout.root, self.root)
        self.assertEqual(layout.sources, self.root / "source")
        self.assertEqual(layout.tests, self.root / "tests")
        self.assertEqual(layout.artifacts, self.root / "build")
        self.assertEqual(layout.libraries, [self.root / "lib", self.root / "node_modules"])
        self.assertEqual(layout.cache_file, self.root / "cache" / "solidity-files-cache.json")

    def test_defaults_without_profile(self):
        self.write("foundry.toml", "")
        (self.root / "test").mkdir()

        layout = parse_foundry_config(self.root)

        self.assertEqual(layout.sources, self.root / "contracts")
        self.assertEqual(layout.artifacts, self.root / "out")
        self.assertEqual(layout.tests, self.root / "test")
        self.assertEqual(layout.libraries, [self.root / "lib"])

    def test_src_default_when_only_src_exists(self):
        self.write("foundry.toml", "[profile.default]\n")
        (self.root / "src").mkdir()
        (self.root / "node_modules").mkdir()

        parser = FoundryConfigParser(self.root)

        self.assertEqual(parser.src_dir, self.root / "src")
        self.assertEqual(parser.libs, [self.root / "node_modules"])
        self.assertIsNone(parser.test_dir)

    def test_cache_path_override(self):
        self.write("foundry.toml", '[profile.default]\ncache_path = "forge-cache"\n')
        self.assertEqual(
            FoundryConfigParser(self.root).cache_file,
            self.root / "forge-cache" / "solidity-files-cache.json",
        )

    def test_single_string_libs(self):
        self.write("foundry.toml", '[profile.default]\nlibs = "deps"\n')
        self.assertEqual(FoundryConfigParser(self.root).libs, [self.root / "deps"])

    def test_other_profiles_are_ignored(self):
        self.write("foundry.toml", '[profile.default]\nsrc = "src"\n\n[profile.ci]\nsrc = "other"\n\n[fmt]\nline_length = 120\n')
        self.assertEqual(FoundryConfigParser(self.root).src_dir, self.root / "src")

    def test_missing_descriptor(self):
        with self.assertRaises(ParseConfigError):
            parse_foundry_config(self.root)

    def test_malformed_descriptor(self):
        self.write("foundry.toml", "[profile.default\nsrc = ")
        with self.assertRaises(ParseConfigError):
            parse_foundry_config(self.root)

    def test_wrong_value_type(self):
        self.write("foundry.toml", "[profile.default]\nsrc = 42\n")
        with self.assertRaises(ParseConfigError):
            parse_foundry_config(self.root)

    def test_profile_not_a_table(self):
        self.write("foundry.toml", 'profile = "default"\n')
        with self.assertRaises(ParseConfigError):
            parse_foundry_config(self.root)

    def test_parse_remappings_txt(self):
        self.write("foundry.toml", '[profile.default]\nremappings = ["@solmate/=lib/solmate/src/"]\n')
        self.write("remappings.txt", "@openzeppelin/=lib/openzeppelin-contracts/\n\n# comment\nbroken-line\n@solmate/=lib/other/\n")

        remappings = parse_foundry_config(self.root).remappings

        self.assertEqual(remappings["@openzeppelin/"], self.root / "lib/openzeppelin-contracts/")
        # descriptor entries come first
        self.assertEqual(remappings["@solmate/"], self.root / "lib/solmate/src/")
        self.assertEqual(len(remappings), 2)

    def test_undecodable_remappings_txt(self):
        self.write("foundry.toml", "[profile.default]\n")
        (self.root / "remappings.txt").write_bytes(b"\xff\xfe=bad\n")

        with self.assertRaises(ParseConfigError):
            parse_foundry_config(self.root)


if __name__ == '__main__':
    unittest.main()
