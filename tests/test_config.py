import pytest

from oktaws.config import DEFAULT_REGION, Profile, load_organization, load_organizations
from oktaws.errors import ConfigError

MYCORP = """
[organization]
username = alice
role = Developer
duration_seconds = 7200
region = eu-west-1

[profile production]
application = AWS Production
role = ReadOnly

[profile dev]
application = AWS Dev

[profile sandbox]
application = AWS Sandbox
duration_seconds = 900
"""


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    (tmp_path / "mycorp.ini").write_text(MYCORP)
    (tmp_path / "other.ini").write_text("[profile ops]\napplication = AWS Ops\nrole = Admin\n")
    (tmp_path / "notes.txt").write_text("not a config")
    monkeypatch.setenv("OKTAWS_HOME", str(tmp_path))
    return tmp_path


def test_load_organization(config_dir):
    org = load_organization(str(config_dir / "mycorp.ini"))

    assert org.name == "mycorp"
    assert org.username == "alice"
    assert org.region == "eu-west-1"
    assert org.url is None
    assert org.profiles == [
        Profile("production", "AWS Production", "ReadOnly", 7200),
        Profile("dev", "AWS Dev", "Developer", 7200),
        Profile("sandbox", "AWS Sandbox", "Developer", 900),
    ]


def test_username_defaults_to_os_user(config_dir, monkeypatch):
    monkeypatch.setattr("oktaws.config.getpass.getuser", lambda: "bob")

    org = load_organization(str(config_dir / "other.ini"))

    assert org.username == "bob"
    assert org.region == DEFAULT_REGION
    assert org.profiles == [Profile("ops", "AWS Ops", "Admin", None)]


def test_matching_profiles_keep_file_order(config_dir):
    org = load_organization(str(config_dir / "mycorp.ini"))

    assert [p.name for p in org.matching_profiles()] == ["production", "dev", "sandbox"]
    assert [p.name for p in org.matching_profiles("*o*")] == ["production", "sandbox"]
    assert [p.name for p in org.matching_profiles("d*")] == ["dev"]
    assert org.matching_profiles("nothing") == []


def test_load_organizations_filters_by_pattern(config_dir):
    assert [o.name for o in load_organizations()] == ["mycorp", "other"]
    assert [o.name for o in load_organizations("my*")] == ["mycorp"]


def test_no_matching_organization(config_dir):
    with pytest.raises(ConfigError, match="No organizations found called acme"):
        load_organizations("acme")


def test_missing_config_directory(tmp_path):
    with pytest.raises(ConfigError, match="does not exist"):
        load_organizations(directory=str(tmp_path / "missing"))


def test_profile_without_role(tmp_path):
    path = tmp_path / "corp.ini"
    path.write_text("[profile dev]\napplication = AWS Dev\n")

    with pytest.raises(ConfigError, match="no role configured"):
        load_organization(str(path))


def test_profile_without_application(tmp_path):
    path = tmp_path / "corp.ini"
    path.write_text("[profile dev]\nrole = Admin\n")

    with pytest.raises(ConfigError, match="no application"):
        load_organization(str(path))


def test_invalid_duration(tmp_path):
    path = tmp_path / "corp.ini"
    path.write_text("[profile dev]\napplication = AWS Dev\nrole = Admin\nduration_seconds = an hour\n")

    with pytest.raises(ConfigError, match="duration_seconds"):
        load_organization(str(path))
