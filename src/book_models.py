from dataclasses import dataclass, field


@dataclass
class BookRecord:
    title: str
    authors: list[str] = field(default_factory=list)
    average_rating: float = 0.0
    rating_count: int = 0
    published: int = 0
    editions: int = 0

    def to_dict(self, omit_empty: bool = True) -> dict:
        data = {
            "title": self.title,
            "authors": list(self.authors),
            "average_rating": self.average_rating,
            "number_of_ratings": self.rating_count,
            "published": self.published,
            "editions": self.editions,
        }

        if omit_empty:
            # zero / empty values are left out of the output
            data = {key: value for key, value in data.items() if value}

        return data


@dataclass(frozen=True)
class RunConfig:
    query: str
    page_count: int

    def __post_init__(self):
        if isinstance(self.page_count, bool) or not isinstance(self.page_count, int):
            raise ValueError(f"page count must be an integer, got {self.page_count!r}")
        if self.page_count < 1:
            raise ValueError(f"page count must be positive, got {self.page_count}")

    @classmethod
    def from_input(cls, query: str, page_count_text: str) -> "RunConfig":
        """Build a config from raw prompt answers."""
        text = page_count_text.strip()
        try:
            page_count = int(text)
        except ValueError:
            raise ValueError(f"can't parse page count to int: {text!r}") from None

        return cls(query=query, page_count=page_count)
