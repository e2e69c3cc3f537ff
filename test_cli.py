#!/usr/bin/env python3
"""
Tests for the command-line boundary.
"""

import json
import tempfile
import unittest
from pathlib import Path

import yaml

from whois_dns_sync.cli.main import (
    apply_overrides,
    build_parser,
    build_trigger_context,
    get_default_config,
    load_config,
    main,
)
from whois_dns_sync.core.models import ChangeSource, FileStatus
from whois_dns_sync.exceptions import InputError


class TestTriggerContext(unittest.TestCase):
    """Test how arguments and environment become a TriggerContext."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def parse(self, argv, environ=None):
        return build_parser(environ or {}).parse_args(["sync"] + argv)

    def test_manual_from_environment(self):
        """Test the manual trigger variables."""
        environ = {
            "TRIGGER_TYPE": "manual",
            "MANUAL_DOMAIN": "example.no.kg",
            "MANUAL_OPERATION": "delete",
            "FORCE_SYNC": "true",
            "TRIGGERED_BY": "operator",
        }
        context = build_trigger_context(self.parse([], environ), environ)
        self.assertEqual(context.source, ChangeSource.MANUAL)
        self.assertEqual(context.domain, "example.no.kg")
        self.assertEqual(context.operation, "delete")
        self.assertTrue(context.force_sync)
        self.assertEqual(context.title, "")
        self.assertEqual(context.summary, "Manual DNS Sync - operator")

    def test_domain_implies_manual(self):
        """Test source detection without a trigger type."""
        context = build_trigger_context(self.parse(["--domain", "example.no.kg"]), {})
        self.assertEqual(context.source, ChangeSource.MANUAL)

    def test_pull_request_files(self):
        """Test loading the change file list of a merged pull request."""
        pr_files = self.root / "pr-files.json"
        pr_files.write_text(
            json.dumps([{"filename": "whois/example.no.kg.json", "status": "added"}])
        )
        args = self.parse(
            ["--source", "pr_merge", "--pr-files", str(pr_files), "--force-sync",
             "--title", "Registration: example.no.kg"]
        )
        context = build_trigger_context(args, {})
        self.assertEqual(context.source, ChangeSource.REVIEWED_CHANGE)
        self.assertEqual(context.files[0].status, FileStatus.ADDED)
        self.assertFalse(context.force_sync)

    def test_missing_pull_request_files(self):
        """Test that missing change metadata is an input error."""
        args = self.parse(["--source", "pr_merge", "--pr-files", str(self.root / "none.json")])
        with self.assertRaises(InputError):
            build_trigger_context(args, {})

    def test_unknown_trigger_type(self):
        """Test an unknown trigger type coming from the environment."""
        environ = {"TRIGGER_TYPE": "schedule"}
        with self.assertRaises(InputError):
            build_trigger_context(self.parse([], environ), environ)


class TestConfiguration(unittest.TestCase):
    """Test configuration loading and overrides."""

    def test_missing_config_uses_defaults(self):
        """Test fallback to the default configuration."""
        self.assertEqual(load_config("/nonexistent/config.yaml"), get_default_config())

    def test_environment_overrides(self):
        """Test credentials and flags applied on top of the file."""
        config = get_default_config()
        args = build_parser({}).parse_args(["sync", "--add-policy", "upsert", "--result-file", "out.json"])
        environ = {"PDA_API_URL": "https://pda.example.net", "PDA_API_KEY": "key", "PDA_ZONE": "no.kg"}
        merged = apply_overrides(config, environ, args)

        pda = merged["dns_providers"]["powerdns_admin"]
        self.assertEqual(pda["api_url"], "https://pda.example.net")
        self.assertEqual(pda["api_key"], "key")
        self.assertEqual(pda["zone"], "no.kg")
        self.assertEqual(merged["sync"]["add_policy"], "upsert")
        self.assertEqual(merged["sync"]["result_file"], "out.json")
        self.assertEqual(config["dns_providers"]["powerdns_admin"]["api_url"], "")


class TestMain(unittest.TestCase):
    """Test complete CLI runs against the mock provider."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        (self.root / "whois").mkdir()
        (self.root / "whois" / "example.no.kg.json").write_text(
            json.dumps({"domain": "example.no.kg", "nameservers": ["ns1.example.net"]}, indent=2)
        )
        (self.root / "whois" / "broken.no.kg.json").write_text("{")
        self.result_file = self.root / "dns-sync-result.json"
        self.config_file = self.root / "config.yaml"
        self.config_file.write_text(
            yaml.dump(
                {
                    "default_provider": "mock",
                    "dns_providers": {"mock": {"zone": "no.kg", "records": {}}},
                    "registry": {"root": str(self.root)},
                    "sync": {
                        "result_file": str(self.result_file),
                        "retry": {"max_attempts": 1},
                    },
                }
            )
        )

    def tearDown(self):
        self.tmp.cleanup()

    def run_main(self, argv, environ=None):
        with self.assertRaises(SystemExit) as ctx:
            main(["sync", "--config", str(self.config_file)] + argv, environ=environ or {})
        return ctx.exception.code

    def write_config(self, sync=None, records=None, **sections):
        config = {
            "default_provider": "mock",
            "dns_providers": {"mock": {"zone": "no.kg", "records": records or {}}},
            "registry": {"root": str(self.root)},
            "sync": dict({"result_file": str(self.result_file), "retry": {"max_attempts": 1}}, **(sync or {})),
        }
        config.update(sections)
        self.config_file.write_text(yaml.dump(config))

    def read_artifact(self):
        return json.loads(self.result_file.read_text())

    def test_successful_manual_sync(self):
        """Test a manual registration run."""
        code = self.run_main(["--domain", "example.no.kg", "--operation", "add"])
        self.assertEqual(code, 0)
        result = json.loads(self.result_file.read_text())
        self.assertTrue(result["success"])
        self.assertEqual(result["nameservers"], ["ns1.example.net"])

    def test_force_sync_exit_status(self):
        """Test that force sync makes an invalid record non-fatal."""
        self.assertEqual(self.run_main(["--domain", "broken.no.kg"]), 1)
        self.assertEqual(self.run_main(["--domain", "broken.no.kg", "--force-sync"]), 0)
        self.assertFalse(json.loads(self.result_file.read_text())["success"])

    def test_bad_change_metadata_writes_artifact(self):
        """Test that unreadable change metadata still produces a result."""
        code = self.run_main(["--source", "pr_merge", "--pr-files", str(self.root / "none.json")])
        self.assertEqual(code, 1)
        result = json.loads(self.result_file.read_text())
        self.assertFalse(result["success"])
        self.assertIn("not found", result["error"])

    def test_unreadable_change_metadata_writes_artifact(self):
        """Test change metadata that is not UTF-8 or not a file."""
        binary = self.root / "pr-files.json"
        binary.write_bytes(b"\xff\xfe[]")
        for path in (binary, self.root / "whois"):
            with self.subTest(path=path):
                self.result_file.unlink(missing_ok=True)
                code = self.run_main(["--source", "pr_merge", "--pr-files", str(path)])
                self.assertEqual(code, 1)
                result = self.read_artifact()
                self.assertFalse(result["success"])
                self.assertIn("change metadata", result["error"])

    def test_actor_name_does_not_select_operation(self):
        """Test that a manual run without an operation is auto, whoever triggers it."""
        self.write_config(records={"example.no.kg": ["old.example.net"]})
        for actor in ("bulk-remover", "delete-bot", "registrar"):
            with self.subTest(actor=actor):
                code = self.run_main(
                    ["--domain", "example.no.kg"], environ={"TRIGGERED_BY": actor}
                )
                self.assertEqual(code, 0)
                result = self.read_artifact()
                self.assertEqual(result["operation"], "auto")
                self.assertEqual(result["nameservers"], ["ns1.example.net"])

    def test_operator_title_still_classifies_manual_run(self):
        """Test that an explicit title is used for classification."""
        self.write_config(records={"example.no.kg": ["old.example.net"]})
        code = self.run_main(["--domain", "example.no.kg", "--title", "Remove: example.no.kg"])
        self.assertEqual(code, 0)
        self.assertEqual(self.read_artifact()["operation"], "delete")

    def test_invalid_add_policy_writes_artifact(self):
        """Test an unknown add policy in the configuration."""
        self.write_config(sync={"add_policy": "bogus"})
        code = self.run_main(["--domain", "example.no.kg"])
        self.assertEqual(code, 1)
        result = self.read_artifact()
        self.assertFalse(result["success"])
        self.assertIn("Unknown add policy 'bogus'", result["error"])

    def test_invalid_logging_level_writes_artifact(self):
        """Test an unknown logging level in the configuration."""
        self.write_config(logging={"level": "chatty"})
        code = self.run_main(["--domain", "example.no.kg"])
        self.assertEqual(code, 1)
        self.assertIn("Unknown logging level", self.read_artifact()["error"])

    def test_show_result(self):
        """Test displaying stored results."""
        with self.assertRaises(SystemExit) as ctx:
            main(["show-result", str(self.result_file)], environ={})
        self.assertEqual(ctx.exception.code, 1)

        self.result_file.write_text(json.dumps({"success": True, "message": "ok"}))
        with self.assertRaises(SystemExit) as ctx:
            main(["show-result", str(self.result_file)], environ={})
        self.assertEqual(ctx.exception.code, 0)


if __name__ == "__main__":
    unittest.main()
