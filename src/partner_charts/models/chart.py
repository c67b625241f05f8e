"""Chart metadata models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass
class Maintainer:
    name: str = ""
    email: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> Maintainer:
        return cls(
            name=d.get("name", ""),
            email=d.get("email", ""),
            url=d.get("url", ""),
        )

    def to_dict(self) -> dict[str, str]:
        return {k: v for k, v in (("name", self.name), ("email", self.email), ("url", self.url)) if v}


@dataclass
class ChartDependency:
    name: str = ""
    version: str = ""
    repository: str = ""
    condition: str = ""
    alias: str = ""
    tags: list[str] = field(default_factory=list)
    # import-values, enabled and anything newer Helm adds
    extra: dict[str, Any] = field(default_factory=dict)

    _KNOWN = ("name", "version", "repository", "condition", "alias", "tags")

    @classmethod
    def from_dict(cls, d: dict) -> ChartDependency:
        return cls(
            name=d.get("name", ""),
            version=_str(d.get("version", "")),
            repository=d.get("repository", ""),
            condition=d.get("condition", ""),
            alias=d.get("alias", ""),
            tags=list(d.get("tags") or []),
            extra={k: v for k, v in d.items() if k not in cls._KNOWN},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key in self._KNOWN:
            value = getattr(self, key)
            if value:
                out[key] = value
        out.update(self.extra)
        return out


@dataclass
class ChartMetadata:
    """Contents of a Chart.yaml.

    Empty strings, empty lists and ``False`` mean "not set", which is what the
    overlay merge relies on.
    """

    name: str = ""
    version: str = ""
    app_version: str = ""
    description: str = ""
    api_version: str = ""
    chart_type: str = ""
    home: str = ""
    icon: str = ""
    condition: str = ""
    tags: str = ""
    kube_version: str = ""
    deprecated: bool = False
    keywords: list[str] = field(default_factory=list)
    sources: list[str] = field(default_factory=list)
    maintainers: list[Maintainer] = field(default_factory=list)
    dependencies: list[ChartDependency] = field(default_factory=list)
    annotations: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict | None) -> ChartMetadata:
        if not d:
            return cls()
        return cls(
            name=_str(d.get("name", "")),
            version=_str(d.get("version", "")),
            app_version=_str(d.get("appVersion", "")),
            description=_str(d.get("description", "")),
            api_version=_str(d.get("apiVersion", "")),
            chart_type=_str(d.get("type", "")),
            home=_str(d.get("home", "")),
            icon=_str(d.get("icon", "")),
            condition=_str(d.get("condition", "")),
            tags=_str(d.get("tags", "")),
            kube_version=_str(d.get("kubeVersion", "")),
            deprecated=bool(d.get("deprecated", False)),
            keywords=list(d.get("keywords") or []),
            sources=list(d.get("sources") or []),
            maintainers=[Maintainer.from_dict(m) for m in d.get("maintainers") or []],
            dependencies=[ChartDependency.from_dict(dep) for dep in d.get("dependencies") or []],
            annotations={str(k): _str(v) for k, v in (d.get("annotations") or {}).items()},
        )

    def to_dict(self) -> dict[str, Any]:
        """Render back to Chart.yaml keys, omitting unset fields."""
        pairs: list[tuple[str, Any]] = [
            ("apiVersion", self.api_version),
            ("name", self.name),
            ("version", self.version),
            ("kubeVersion", self.kube_version),
            ("description", self.description),
            ("type", self.chart_type),
            ("keywords", self.keywords),
            ("home", self.home),
            ("sources", self.sources),
            ("dependencies", [dep.to_dict() for dep in self.dependencies]),
            ("maintainers", [m.to_dict() for m in self.maintainers]),
            ("icon", self.icon),
            ("appVersion", self.app_version),
            ("deprecated", self.deprecated),
            ("condition", self.condition),
            ("tags", self.tags),
            ("annotations", dict(self.annotations)),
        ]
        return {key: value for key, value in pairs if value}


@dataclass
class Chart:
    """A chart held in memory: its metadata plus every other file by relative path."""

    metadata: ChartMetadata = field(default_factory=ChartMetadata)
    files: dict[str, bytes] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def version(self) -> str:
        return self.metadata.version
