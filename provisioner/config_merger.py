"""
config_merger.py

Responsibility: Persist the resolved identity and credential into local build-tool config.

Documents and their write policy:
- Maven settings.xml: regenerated wholesale from `settings.xml.j2` (it only holds
  provisioning structure under one well-known server/profile id).
- Gradle gradle.properties: merged in place; only `gpr.user` / `gpr.key` are owned,
  every other line survives untouched.
- Summary file: regenerated wholesale, shell-sourceable.
- pom.xml: distribution management retargeted via parse/mutate/serialize when the
  resolved account is not the default organization.

Every existing document is copied to `<name>.backup` right before it is mutated.
Running twice with the same inputs leaves byte-identical documents.
"""

from __future__ import annotations

import re
import shutil
import xml.etree.ElementTree as ElementTree
from dataclasses import dataclass
from pathlib import Path

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import DefusedXMLParser, ParseError

from provisioner.errors import PersistenceError
from provisioner.logging import get_logger
from provisioner.models import Credential, Identity
from provisioner.renderer import RenderError, render_template

log = get_logger("config")

GRADLE_SECTION_HEADER = "# GitHub Package Registry"
GRADLE_USER_KEY = "gpr.user"
GRADLE_KEY_KEY = "gpr.key"
BACKUP_SUFFIX = ".backup"
# java.util.Properties files are ISO-8859-1; latin-1 also round-trips any other bytes unchanged.
PROPERTIES_ENCODING = "latin-1"

_PROPERTY_KEY_RE = re.compile(r"\s*([^#!\s][^=:\s]*)")
_PHYSICAL_LINE_RE = re.compile(r"[^\r\n]*(?:\r\n|\r|\n)|[^\r\n]+\Z")
_EOL_RE = re.compile(r"\r\n|\r|\n")
_SUMMARY_LINE_RE = re.compile(r"^\s*(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)=(.*)$")


def packages_url(account_name: str, repo_name: str = "*") -> str:
    return f"https://maven.pkg.github.com/{account_name}/{repo_name}"


def backup_path(path: Path) -> Path:
    return path.with_name(path.name + BACKUP_SUFFIX)


def backup_file(path: Path) -> Path | None:
    """
    Copy `path` to its sibling backup (overwriting any older backup).

    Returns the backup path, or None when there was nothing to back up.
    """
    if not path.exists():
        return None
    dst = backup_path(path)
    try:
        shutil.copy2(path, dst)
    except OSError as e:
        raise PersistenceError(f"Could not back up {path}: {e}", field=str(path)) from e
    log.info("Backed up %s to %s", path, dst)
    return dst


def _write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding=encoding, newline="")
    except (OSError, UnicodeError) as e:
        raise PersistenceError(
            f"Could not write {path}: {e}",
            field=str(path),
            hint=f"restore from {backup_path(path)} if needed, then re-run",
        ) from e


def _read_text(path: Path, encoding: str = "utf-8") -> str:
    try:
        with path.open(encoding=encoding, newline="") as f:
            return f.read()
    except (OSError, UnicodeError) as e:
        raise PersistenceError(f"Could not read {path}: {e}", field=str(path)) from e


def _render(name: str, context: dict[str, object], path: Path) -> str:
    try:
        return render_template(name, context)
    except RenderError as e:
        raise PersistenceError(str(e), field=str(path)) from e


def render_maven_settings(identity: Identity, credential: Credential) -> str:
    return _render(
        "settings.xml.j2",
        {
            "account_name": identity.account_name,
            "server_id": identity.server_id,
            "username": credential.login,
            "password": credential.secret,
            "repository_url": packages_url(identity.account_name),
        },
        Path("settings.xml"),
    )


def write_maven_settings(path: Path, identity: Identity, credential: Credential) -> Path:
    text = render_maven_settings(identity, credential)
    backup_file(path)
    _write_text(path, text)
    log.info("Maven settings written to %s", path)
    return path


def property_key(line: str) -> str | None:
    m = _PROPERTY_KEY_RE.match(line)
    return m.group(1) if m else None


def _physical_lines(text: str) -> list[str]:
    return _PHYSICAL_LINE_RE.findall(text)


def _continues(line: str) -> bool:
    body = line.rstrip("\r\n")
    return (len(body) - len(body.rstrip("\\"))) % 2 == 1


def _logical_lines(text: str) -> list[str]:
    """
    Join backslash-continued property lines; comments never continue.
    """
    out: list[str] = []
    pending: str | None = None
    for raw in _physical_lines(text):
        line = raw.rstrip("\r\n")
        if pending is None:
            if property_key(line) is None:
                out.append(line)
                continue
            part = line
        else:
            part = pending + line.lstrip()
        if _continues(line):
            pending = part[:-1]
        else:
            out.append(part)
            pending = None
    if pending is not None:
        out.append(pending)
    return out


def merge_properties_text(existing: str, values: dict[str, str]) -> str:
    """
    Replace owned keys in place, append missing ones under the managed section.

    Lines are kept with their original terminators; continuation lines of an
    unrelated property pass through untouched, those of a replaced owned key
    are dropped with it.
    """
    m = _EOL_RE.search(existing)
    eol = m.group(0) if m else "\n"

    out: list[str] = []
    seen: set[str] = set()
    continued = False
    dropping = False
    for line in _physical_lines(existing):
        if continued:
            continued = _continues(line)
            if not dropping:
                out.append(line)
            continue
        key = property_key(line)
        continued = key is not None and _continues(line)
        dropping = False
        if key is not None and key in values:
            body = line.rstrip("\r\n")
            out.append(f"{key}={values[key]}{line[len(body):]}")
            seen.add(key)
            dropping = continued
        else:
            out.append(line)

    missing = [k for k in values if k not in seen]
    if missing:
        if out and not out[-1].endswith(("\n", "\r")):
            out[-1] += eol
        if out and out[-1].strip():
            out.append(eol)
        out.append(GRADLE_SECTION_HEADER + eol)
        out.extend(f"{k}={values[k]}{eol}" for k in missing)

    return "".join(out)


def read_properties(path: Path) -> dict[str, str]:
    props: dict[str, str] = {}
    for line in _logical_lines(_read_text(path, encoding=PROPERTIES_ENCODING)):
        key = property_key(line)
        if key is None:
            continue
        rest = line.strip()[len(key):].lstrip()
        if rest[:1] in ("=", ":"):
            rest = rest[1:]
        props[key] = rest.strip()
    return props


def merge_gradle_properties(path: Path, credential: Credential) -> Path:
    existing = _read_text(path, encoding=PROPERTIES_ENCODING) if path.exists() else ""
    text = merge_properties_text(existing, {GRADLE_USER_KEY: credential.login, GRADLE_KEY_KEY: credential.secret})
    backup_file(path)
    _write_text(path, text, encoding=PROPERTIES_ENCODING)
    log.info("Gradle properties written to %s", path)
    return path


def write_summary(path: Path, identity: Identity, repo_name: str, user: str) -> Path:
    text = _render(
        "package-config.j2",
        {"account_name": identity.account_name, "repo_name": repo_name, "user": user},
        path,
    )
    _write_text(path, text)
    log.info("Configuration saved to %s", path)
    return path


def read_summary(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    for line in _read_text(path).splitlines():
        m = _SUMMARY_LINE_RE.match(line)
        if m:
            values[m.group(1)] = m.group(2).strip().strip("'\"")
    return values


@dataclass(frozen=True)
class PomRepository:
    section: str
    id: str
    url: str


def _parse_pom(path: Path) -> ElementTree.Element:
    parser = DefusedXMLParser(target=ElementTree.TreeBuilder(insert_comments=True))
    try:
        parser.feed(path.read_bytes())
        return parser.close()
    except OSError as e:
        raise PersistenceError(f"Could not read {path}: {e}", field=str(path)) from e
    except (ParseError, DefusedXmlException) as e:
        raise PersistenceError(f"Could not parse {path}: {e}", field=str(path)) from e


def _namespace(root: ElementTree.Element) -> str:
    if root.tag.startswith("{"):
        return root.tag[1:].split("}", 1)[0]
    return ""


def _iter_pom_repositories(root: ElementTree.Element):
    ns = _namespace(root)

    def q(tag: str) -> str:
        return f"{{{ns}}}{tag}" if ns else tag

    dist = root.find(q("distributionManagement"))
    if dist is not None:
        for section in ("repository", "snapshotRepository"):
            elem = dist.find(q(section))
            if elem is not None:
                yield f"distributionManagement/{section}", elem, q
    repos = root.find(q("repositories"))
    if repos is not None:
        for elem in repos.findall(q("repository")):
            yield "repositories/repository", elem, q


def read_pom_repositories(path: Path) -> list[PomRepository]:
    root = _parse_pom(path)
    found: list[PomRepository] = []
    for section, elem, q in _iter_pom_repositories(root):
        found.append(
            PomRepository(
                section=section,
                id=(elem.findtext(q("id")) or "").strip(),
                url=(elem.findtext(q("url")) or "").strip(),
            )
        )
    return found


def _set_child_text(elem: ElementTree.Element, tag: str, value: str) -> bool:
    child = elem.find(tag)
    if child is None or (child.text or "").strip() == value:
        return False
    child.text = value
    return True


def retarget_pom(path: Path, identity: Identity, repo_name: str, default_org: str) -> bool:
    """
    Point pom.xml distribution management at the resolved account.

    Returns True when the file was rewritten. A pom that already targets the
    account, or a missing pom, is left alone.
    """
    if identity.account_name == default_org or not path.is_file():
        return False

    root = _parse_pom(path)
    old_id = f"github-{default_org}"
    new_url = packages_url(identity.account_name, repo_name)

    changed = False
    for section, elem, q in _iter_pom_repositories(root):
        if section.startswith("repositories/") and (elem.findtext(q("id")) or "").strip() != old_id:
            continue
        changed |= _set_child_text(elem, q("id"), identity.server_id)
        changed |= _set_child_text(elem, q("url"), new_url)

    if not changed:
        return False

    ns = _namespace(root)
    if ns:
        ElementTree.register_namespace("", ns)
    body = ElementTree.tostring(root, encoding="unicode")
    backup_file(path)
    _write_text(path, '<?xml version="1.0" encoding="UTF-8"?>\n' + body + "\n")
    log.info("pom.xml distribution management retargeted to %s", identity.server_id)
    return True
