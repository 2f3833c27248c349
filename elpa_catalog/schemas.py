"""Raw payload shapes of each archive family.

Collectors validate whole payloads against these before building any
:class:`~elpa_catalog.models.Package`.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, StrictInt, TypeAdapter, model_validator

from elpa_catalog.validation import (
    Dependencies,
    JsonString,
    OptionalJsonString,
    People,
    SourceUrl,
    VersionList,
)

PackageKind = Literal["tar", "single"]


# ---------------------------------------------------------------------------
# MELPA: archive.json, recipes.json, download_counts.json
# ---------------------------------------------------------------------------


class MelpaProps(BaseModel):
    url: Optional[SourceUrl] = None
    commit: Optional[str] = None
    revdesc: Optional[str] = None
    keywords: Optional[list[str]] = None
    maintainers: Optional[People] = None
    # Older archive.json files use the singular form
    maintainer: Optional[People] = None
    authors: Optional[People] = None


class MelpaArchiveEntry(BaseModel):
    ver: VersionList
    deps: Dependencies = Field(default_factory=dict)
    desc: str = Field(description="The summary, despite the name")
    type: PackageKind
    props: MelpaProps = Field(default_factory=MelpaProps)


class RepoRecipe(BaseModel):
    """Recipe for a forge-hosted package, identified by ``user/repo``."""

    fetcher: Literal["github", "gitlab", "codeberg", "sourcehut"]
    repo: str


class UrlRecipe(BaseModel):
    """Recipe for a package fetched from an arbitrary VCS URL."""

    fetcher: Literal["git", "hg"]
    url: str


Recipe = Annotated[Union[RepoRecipe, UrlRecipe], Field(discriminator="fetcher")]

RECIPE_URL_TEMPLATES = {
    "github": "https://github.com/{repo}",
    "gitlab": "https://gitlab.com/{repo}",
    "codeberg": "https://codeberg.org/{repo}",
    # sourcehut user names carry a tilde in URLs but not in recipes
    "sourcehut": "https://git.sr.ht/~{repo}",
}


def recipe_url(recipe: Union[RepoRecipe, UrlRecipe]) -> str:
    """Return the repository URL a recipe points to."""
    if isinstance(recipe, UrlRecipe):
        return recipe.url
    return RECIPE_URL_TEMPLATES[recipe.fetcher].format(repo=recipe.repo)


melpa_archive_json = TypeAdapter(dict[str, MelpaArchiveEntry])
melpa_recipes_json = TypeAdapter(dict[str, Recipe])
melpa_download_counts_json = TypeAdapter(dict[str, Annotated[StrictInt, Field(ge=0)]])


# ---------------------------------------------------------------------------
# ELPA: archive-contents, converted to JSON
# ---------------------------------------------------------------------------

ELPA_TUPLE_FIELDS = ("version", "dependencies", "summary", "kind", "props")


class ElpaProps(BaseModel):
    url: Optional[SourceUrl] = None
    keywords: Optional[list[str]] = None
    maintainer: Optional[People] = None
    authors: Optional[People] = None
    commit: Optional[str] = None


class ElpaEntry(BaseModel):
    """One ``[version, deps, summary, kind, props?]`` archive-contents entry."""

    version: VersionList
    dependencies: Dependencies
    summary: str
    kind: PackageKind
    props: Optional[ElpaProps] = None

    @model_validator(mode="before")
    @classmethod
    def _from_tuple(cls, data: Any) -> Any:
        if not isinstance(data, (list, tuple)):
            raise ValueError(
                f"expected a 4- or 5-element array, got {type(data).__name__}"
            )
        if len(data) not in (4, 5):
            raise ValueError(f"expected a 4- or 5-element array, got {len(data)} elements")
        return dict(zip(ELPA_TUPLE_FIELDS, data))


elpa_converted_json = TypeAdapter(dict[str, ElpaEntry])


# ---------------------------------------------------------------------------
# epkgs: rows of the built-in package database
# ---------------------------------------------------------------------------


class EpkgsPerson(BaseModel):
    name: OptionalJsonString = None
    email: OptionalJsonString = None

    def display(self) -> str:
        if self.name is not None and self.email is not None:
            return f"{self.name} <{self.email}>"
        if self.name is not None:
            return self.name
        if self.email is not None:
            return self.email
        # Rows always have one of the two
        return ""


class EpkgsBuiltinPackage(BaseModel):
    name: JsonString
    summary: JsonString
    keywords: list[str] = Field(default_factory=list)
    authors: list[EpkgsPerson] = Field(default_factory=list)
    maintainers: list[EpkgsPerson] = Field(default_factory=list)
    dependencies: list[JsonString] = Field(default_factory=list)
