from datetime import datetime, timezone

import pytest

from pipekit.template import TemplateError
from releaser.framework.artifacts import Artifact, ArtifactType
from releaser.framework.config import ExtraFile, Project
from releaser.framework.extrafiles import ExtraFilesError, find_extra_files
from releaser.framework.runtime import ReleaseContext, split_env_entry
from releaser.framework.tmpl import TemplateRenderer


def _ctx(**kwargs) -> ReleaseContext:
    project = Project(project_name="demo", env=kwargs.pop("env", []))
    return ReleaseContext.from_project(project, environ=kwargs.pop("environ", {"HOST": "h"}), **kwargs)


def test_fields_describe_the_release():
    ctx = _ctx(tag="v1.4.2-rc.1")
    ctx.date = datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)

    fields = TemplateRenderer(ctx).fields()

    assert fields["ProjectName"] == "demo"
    assert fields["Tag"] == "v1.4.2-rc.1"
    assert fields["Version"] == "1.4.2-rc.1"
    assert (fields["Major"], fields["Minor"], fields["Patch"]) == (1, 4, 2)
    assert fields["RawVersion"] == "1.4.2"
    assert fields["IsSnapshot"] is False
    assert fields["Date"] == "2024-05-06T07:08:09Z"
    assert fields["Timestamp"] == 1714979289
    assert fields["Env"] == {"HOST": "h"}
    assert "ArtifactName" not in fields


def test_explicit_version_wins_over_tag():
    ctx = _ctx(tag="v1.0.0", version="1.0.0-SNAPSHOT-abc", is_snapshot=True)

    assert TemplateRenderer(ctx).apply("{{ .Version }} {{ .IsSnapshot }}") == "1.0.0-SNAPSHOT-abc true"


def test_project_env_is_rendered_in_order_over_host_env():
    ctx = _ctx(env=["HOST=overridden", "A=1", "B={{ .Env.A }}-{{ .Env.HOST }}"])

    assert ctx.env == {"HOST": "overridden", "A": "1", "B": "1-overridden"}


def test_artifact_fields():
    artifact = Artifact(
        name="a.tar.gz", path="/dist/a.tar.gz", type=ArtifactType.ARCHIVE, os="linux", arch="arm64", extra={"ID": "x"}
    )

    out = TemplateRenderer(_ctx()).with_artifact(artifact).apply(
        "{{ .ArtifactName }} {{ .ArtifactPath }} {{ .ArtifactID }} {{ .Os }}/{{ .Arch }}"
    )

    assert out == "a.tar.gz /dist/a.tar.gz x linux/arm64"


def test_with_env_and_with_fields_do_not_mutate_the_original():
    base = TemplateRenderer(_ctx())
    derived = base.with_env({"EXTRA": "1"}).with_fields({"Custom": "c"})

    assert derived.apply("{{ .Env.EXTRA }}{{ .Custom }}") == "1c"
    with pytest.raises(TemplateError, match=r'map has no entry for key "EXTRA"'):
        base.apply("{{ .Env.EXTRA }}")


def test_env_helper_functions():
    renderer = TemplateRenderer(_ctx(environ={"SET": "yes", "EMPTY": ""}))

    assert renderer.apply('{{ envOrDefault "SET" "no" }}') == "yes"
    assert renderer.apply('{{ envOrDefault "EMPTY" "fallback" }}') == "fallback"
    assert renderer.apply('{{ if isEnvSet "SET" }}on{{ end }}{{ if isEnvSet "MISSING" }}off{{ end }}') == "on"


@pytest.mark.parametrize(
    ("text", "expected"),
    [("", False), ("true", True), (" true\n", True), ("false", False), ("yes", False), ("{{ .IsSnapshot }}", True)],
)
def test_apply_bool(text, expected):
    assert TemplateRenderer(_ctx(is_snapshot=True)).apply_bool(text) is expected


def test_split_env_entry():
    assert split_env_entry("A=b=c") == ("A", "b=c")
    assert split_env_entry("EMPTY=") == ("EMPTY", "")
    with pytest.raises(ValueError, match=r"expected KEY=value"):
        split_env_entry("=x")


def test_find_extra_files_renders_glob_and_name(tmp_path):
    (tmp_path / "demo-notes.md").write_text("", encoding="utf-8")
    (tmp_path / "nested" / "deep").mkdir(parents=True)
    (tmp_path / "nested" / "deep" / "x.sig").write_text("", encoding="utf-8")

    files = find_extra_files(
        TemplateRenderer(_ctx()),
        [
            ExtraFile(glob=f"{tmp_path}/{{{{ .ProjectName }}}}-*.md", name_template="{{ .ProjectName }}.md"),
            ExtraFile(glob=f"{tmp_path}/**/*.sig"),
        ],
    )

    assert files == {
        "demo.md": str(tmp_path / "demo-notes.md"),
        "x.sig": str(tmp_path / "nested" / "deep" / "x.sig"),
    }


def test_find_extra_files_ignores_directories(tmp_path):
    (tmp_path / "dir.txt").mkdir()

    with pytest.raises(ExtraFilesError, match=r"file does not exist"):
        find_extra_files(TemplateRenderer(_ctx()), [ExtraFile(glob=f"{tmp_path}/*.txt")])


def test_find_extra_files_name_template_needs_single_match(tmp_path):
    for name in ("a.txt", "b.txt"):
        (tmp_path / name).write_text("", encoding="utf-8")
    glob = f"{tmp_path}/*.txt"

    with pytest.raises(ExtraFilesError) as excinfo:
        find_extra_files(TemplateRenderer(_ctx()), [ExtraFile(glob=glob, name_template="one.txt")])

    assert str(excinfo.value) == f'failed to add extra_file: "{glob}" -> "one.txt": glob matches multiple files'


def test_find_extra_files_later_duplicate_name_wins(tmp_path, caplog):
    for folder in ("one", "two"):
        (tmp_path / folder).mkdir()
        (tmp_path / folder / "same.txt").write_text("", encoding="utf-8")

    with caplog.at_level("WARNING"):
        files = find_extra_files(
            TemplateRenderer(_ctx()),
            [ExtraFile(glob=f"{tmp_path}/one/same.txt"), ExtraFile(glob=f"{tmp_path}/two/same.txt")],
        )

    assert files == {"same.txt": str(tmp_path / "two" / "same.txt")}
    assert "same name same.txt" in caplog.text
