from dataclasses import dataclass, field


@dataclass(frozen=True)
class ImageReference:
    repository: str
    tag: str = "latest"

    @classmethod
    def parse(cls, text: str) -> "ImageReference":
        """
        Split ``[registry[:port]/]name[:tag]`` into repository and tag.
        Only a colon after the last slash starts a tag, so ``host:5000/app``
        resolves to ``latest``. Digest references are kept whole.
        """
        text = (text or "").strip()
        if not text:
            raise ValueError("Image reference must not be empty")
        if "@" in text:
            return cls(repository=text, tag="")

        name_start = text.rfind("/") + 1
        colon = text.rfind(":")
        if colon >= name_start:
            repository, tag = text[:colon], text[colon + 1:]
            if not repository or not tag:
                raise ValueError(f"Invalid image reference: {text!r}")
            return cls(repository=repository, tag=tag)
        return cls(repository=text)

    def __str__(self) -> str:
        return f"{self.repository}:{self.tag}" if self.tag else self.repository


@dataclass(frozen=True)
class RegistryCredentials:
    username: str
    token: str = field(repr=False)
    registry: str | None = None  # None means Docker Hub
