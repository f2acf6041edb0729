"""Tests for the churchhub command line."""

import json

import pytest

from churchhub.cli import main
from churchhub.db import ChurchDB

MEMBERS_CSV = (
    "Full Name,Gender,Date of Birth,Phone,Service Category,Care Group,Created At,Updated At\n"
    "Mary Smith,female,1990-04-12,555-0101,Adults,North,,\n"
    "John Doe,male,--07-04,555-0102,Kids,,,\n"
)


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Run from an empty directory so no stray churchhub.toml is picked up."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _db(path):
    db = ChurchDB(str(path))
    db.init_schema()
    return db


class TestImport:
    def test_strict_import(self, cli_env, capsys):
        (cli_env / "members.csv").write_text(MEMBERS_CSV)
        main(["import", "members", "members.csv", "--db", "c.db"])
        out = capsys.readouterr().out
        assert "Imported 2 members" in out
        with _db(cli_env / "c.db") as db:
            assert db.count("members") == 2

    def test_missing_header_exits_1(self, cli_env, capsys):
        (cli_env / "members.csv").write_text(MEMBERS_CSV.replace("Care Group", "Group"))
        with pytest.raises(SystemExit) as exc:
            main(["import", "members", "members.csv", "--db", "c.db"])
        assert exc.value.code == 1
        assert "Error: Missing required headers: Care Group" in capsys.readouterr().err

    def test_mapped_import(self, cli_env, capsys):
        (cli_env / "members.csv").write_text(MEMBERS_CSV.replace("Care Group", "Group"))
        main(["import", "members", "members.csv", "--db", "c.db", "--map", "Care Group=Group"])
        with _db(cli_env / "c.db") as db:
            assert {m.care_group for m in db.list_records("members")} == {"North", ""}

    def test_merge_reports_duplicates(self, cli_env, capsys):
        (cli_env / "members.csv").write_text(MEMBERS_CSV)
        main(["import", "members", "members.csv", "--db", "c.db"])
        main(["import", "members", "members.csv", "--db", "c.db", "--mode", "merge"])
        assert "(2 duplicates skipped)" in capsys.readouterr().out

    def test_guardian_flag(self, cli_env, capsys):
        (cli_env / "members.csv").write_text(MEMBERS_CSV)
        with pytest.raises(SystemExit):
            main(["import", "members", "members.csv", "--db", "c.db", "--require-guardian"])
        assert "Parent/Guardian is required" in capsys.readouterr().err

    def test_config_default_mode(self, cli_env, capsys):
        (cli_env / "members.csv").write_text(MEMBERS_CSV)
        (cli_env / "churchhub.toml").write_text('[database]\npath = "cfg.db"\n[import]\ndefault_mode = "merge"\n')
        main(["import", "members", "members.csv"])
        main(["import", "members", "members.csv"])
        with _db(cli_env / "cfg.db") as db:
            assert db.count("members") == 2

    def test_missing_file(self, cli_env, capsys):
        with pytest.raises(SystemExit):
            main(["import", "members", "nope.csv", "--db", "c.db"])
        assert "Error:" in capsys.readouterr().err

    def test_json_round_trip(self, cli_env, capsys):
        (cli_env / "members.csv").write_text(MEMBERS_CSV)
        main(["import", "members", "members.csv", "--db", "a.db"])
        main(["export", "--format", "json", "--output", "dump.json", "--db", "a.db"])
        assert len(json.loads((cli_env / "dump.json").read_text())["members"]) == 2
        main(["import", "json", "dump.json", "--db", "b.db"])
        with _db(cli_env / "b.db") as db:
            assert db.count("members") == 2


class TestOtherCommands:
    def test_map_columns(self, cli_env, capsys):
        (cli_env / "c.csv").write_text("Name,Phone number,Service\nCarl,1,adults\n")
        main(["map-columns", "converts", "c.csv"])
        out = capsys.readouterr().out
        assert "Phone number" in out
        assert "Unmapped required fields: Full Name" in out

    def test_add_member_requires_guardian(self, cli_env, capsys):
        with pytest.raises(SystemExit):
            main(["add", "members", "--db", "c.db", "--set", "full_name=Kid", "--set", "service_category=teens"])
        assert "Parent/Guardian is required for Children and Teens" in capsys.readouterr().err

    def test_add_visitor_posts_notice(self, cli_env, capsys):
        main(["add", "visitors", "--db", "c.db", "--set", "fullName=Ann", "--set", "serviceAttended=youth"])
        main(["notifications", "--db", "c.db"])
        out = capsys.readouterr().out
        assert "New visitor added: Ann (youth)" in out

    def test_list_and_promote(self, cli_env, capsys):
        main(["add", "visitors", "--db", "c.db", "--set", "id=v-1", "--set", "fullName=Ann"])
        main(["list", "visitors", "--db", "c.db"])
        assert "v-1" in capsys.readouterr().out
        main(["promote", "visitors", "v-1", "members", "--db", "c.db"])
        assert "Ann has been promoted to member!" in capsys.readouterr().out
        main(["list", "visitors", "--db", "c.db"])
        assert "No records found." in capsys.readouterr().out

    def test_promote_missing(self, cli_env, capsys):
        with pytest.raises(SystemExit):
            main(["promote", "converts", "ghost", "members", "--db", "c.db"])
        assert "Error: No convert with id ghost" in capsys.readouterr().err

    def test_prefs(self, cli_env, capsys):
        main(["notifications", "--db", "c.db", "prefs", "--set", "visitor_alerts=off"])
        assert "visitor_alerts       off" in capsys.readouterr().out
        main(["add", "visitors", "--db", "c.db", "--set", "fullName=Ann"])
        main(["notifications", "--db", "c.db"])
        assert "No notifications." in capsys.readouterr().out

    def test_analytics_and_dashboard(self, cli_env, capsys):
        (cli_env / "members.csv").write_text(MEMBERS_CSV)
        main(["import", "members", "members.csv", "--db", "c.db"])
        capsys.readouterr()
        main(["analytics", "--db", "c.db", "--csv", "--months", "2"])
        lines = capsys.readouterr().out.strip().split("\n")
        assert lines[0] == "Month,Total Members,New Converts,Visitors"
        assert len(lines) == 3
        assert lines[-1].endswith(",2,0,0")
        main(["dashboard", "--db", "c.db"])
        assert "Total members" in capsys.readouterr().out

    def test_export_csv(self, cli_env, capsys):
        main(["export", "--db", "c.db", "--output", "out"])
        assert len(list((cli_env / "out").glob("church-*.csv"))) == 3

    def test_summary(self, cli_env, capsys):
        (cli_env / "members.csv").write_text(MEMBERS_CSV)
        main(["import", "members", "members.csv", "--db", "c.db"])
        main(["summary", "--db", "c.db"])
        out = capsys.readouterr().out
        assert "Import History:" in out

    def test_init_config(self, cli_env, capsys):
        main(["init-config", "--output", "x.toml"])
        assert (cli_env / "x.toml").exists()

    def test_no_command(self, cli_env):
        with pytest.raises(SystemExit):
            main([])


class TestEditCommands:
    def test_add_with_header_labels(self, cli_env, capsys):
        main(["add", "members", "--db", "c.db", "--set", "Full Name=Jane Roe", "--set", "Care Group=North"])
        with _db(cli_env / "c.db") as db:
            [jane] = db.list_records("members")
        assert (jane.full_name, jane.care_group) == ("Jane Roe", "North")

    def test_add_unknown_field(self, cli_env, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["add", "members", "--db", "c.db", "--set", "Full Nmae=Jane"])
        assert exc.value.code == 1
        assert "Unknown members field(s): Full Nmae" in capsys.readouterr().err
        with _db(cli_env / "c.db") as db:
            assert db.count("members") == 0

    def test_add_scalar_interests(self, cli_env, capsys):
        main(["add", "visitors", "--db", "c.db", "--set", "fullName=Ann", "--set", "areas_of_interest=1"])
        with _db(cli_env / "c.db") as db:
            assert db.list_records("visitors")[0].areas_of_interest == ["1"]

    def test_update(self, cli_env, capsys):
        main(["add", "converts", "--db", "c.db", "--set", "id=c-1", "--set", "Full Name=Carl"])
        main(["update", "converts", "c-1", "--db", "c.db", "--set", "Follow-up Status=Discipled"])
        assert "Updated Carl (c-1)" in capsys.readouterr().out
        with _db(cli_env / "c.db") as db:
            assert db.get_record("converts", "c-1").follow_up_status == "discipled"

    def test_update_member_needs_guardian(self, cli_env, capsys):
        main(["add", "members", "--db", "c.db", "--set", "id=m-1", "--set", "Full Name=Sam"])
        with pytest.raises(SystemExit):
            main(["update", "members", "m-1", "--db", "c.db", "--set", "Service Category=kids"])
        assert "Parent/Guardian is required" in capsys.readouterr().err
        with _db(cli_env / "c.db") as db:
            assert db.get_record("members", "m-1").service_category == "adults"

    def test_update_without_values(self, cli_env, capsys):
        with pytest.raises(SystemExit):
            main(["update", "members", "m-1", "--db", "c.db"])
        assert "Nothing to update" in capsys.readouterr().err

    def test_delete(self, cli_env, capsys):
        main(["add", "visitors", "--db", "c.db", "--set", "id=v-1", "--set", "fullName=Ann"])
        main(["delete", "visitors", "v-1", "--db", "c.db"])
        assert "Deleted visitor v-1" in capsys.readouterr().out
        with pytest.raises(SystemExit):
            main(["delete", "visitors", "v-1", "--db", "c.db"])
        assert "Error: No visitor with id v-1" in capsys.readouterr().err
