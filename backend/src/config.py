"""Application configuration via environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FEED_URLS = [
    "https://feeds.reuters.com/reuters/topNews",
    "https://feeds.reuters.com/reuters/businessNews",
    "https://feeds.reuters.com/reuters/technologyNews",
    "https://feeds.reuters.com/reuters/worldNews",
    "https://rss.cnn.com/rss/edition.rss",
    "https://feeds.bbci.co.uk/news/rss.xml",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env")

    debug: bool = False
    cors_origins: list[str] = ["http://localhost:5173"]
    # Applied to every outbound call (embedding, feeds, Qdrant, Gemini)
    request_timeout_seconds: float = 30.0

    # Qdrant
    qdrant_url: str = "http://localhost:6333"
    qdrant_collection: str = "news_articles"
    qdrant_api_key: str = ""
    qdrant_distance: str = "cosine"

    # Embedding service (OpenAI-style /embeddings endpoint)
    embedding_url: str = "https://api.jina.ai/v1/embeddings"
    embedding_api_key: str = ""
    embedding_model: str = "jina-embeddings-v3"
    embedding_dimensions: int = 1024

    # Gemini generation
    # Set GOOGLE_API_KEY for API key auth, or USE_VERTEXAI=true for ADC.
    # With neither, answers fall back to a canned message.
    google_api_key: str = ""
    use_vertexai: bool = False
    gcp_project_id: str = ""
    gcp_location: str = "us-central1"
    ai_model: str = "gemini-2.5-flash"

    # Ingestion
    feed_urls: list[str] = DEFAULT_FEED_URLS
    feed_max_entries: int = 50
    min_content_chars: int = 50
    chunk_max_words: int = 300
    upsert_batch_size: int = 100
    # Derive point ids from guid + chunk index so re-runs overwrite
    stable_point_ids: bool = False

    # Retrieval / answering
    retrieval_top_k: int = 5
    max_sources: int = 3
    score_threshold: float | None = None
    fallback_token_delay: float = 0.05


settings = Settings()
