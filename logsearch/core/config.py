"""
Application configuration for the log search platform.

Provides environment-aware settings with conservative defaults. Batch sizes,
retry pacing and relevance boosts are configurable to avoid hard-coded
"magic numbers" in the indexing and query paths.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ElasticsearchConfig(BaseModel):
	"""
	Connection settings for the search backend.

	Notes:
	- hosts: one or more node URLs handed to the client.
	- number_of_shards: applied to every index generation the loader creates.
	"""

	hosts: List[str] = Field(
		default_factory=lambda: ["http://localhost:9200"],
		description="Elasticsearch node URLs",
	)
	request_timeout: float = Field(30.0, gt=0.0, description="Default request timeout (seconds)")
	number_of_shards: int = Field(1, ge=1, description="Primary shards per new index")
	api_key: str | None = Field(None, description="Optional API key for the cluster")


class IndexingConfig(BaseModel):
	"""
	Bulk loading configuration.

	Rationale:
	- Two workers keep the cluster busy without starving searches.
	- 10 MiB batches stay well below the default http.max_content_length.
	- Backoff is capped so a long throttling period does not stall a load forever
	  between attempts.
	"""

	concurrency: int = Field(2, ge=1, description="Number of bulk workers")
	bulk_size_bytes: int = Field(
		10 * 1024 * 1024, ge=1, description="Serialized bytes that trigger a batch flush"
	)
	merge_timeout_seconds: float = Field(
		120.0, gt=0.0, description="Request timeout for the final force-merge"
	)
	retry_backoff_initial: float = Field(
		0.5, ge=0.0, description="First delay after a throttled batch (seconds)"
	)
	retry_backoff_max: float = Field(
		30.0, ge=0.0, description="Upper bound on the delay between throttled attempts"
	)


class SearchConfig(BaseModel):
	"""
	Query compilation and search response tuning.

	Notes:
	- exact_boost and fuzzy_boost weigh exact matches above typo-tolerant ones.
	- minimum_should_match uses the backend's combination syntax.
	- batch_should_terms joins bare optional words into one relevance clause
	  instead of scoring each word separately.
	"""

	exact_boost: float = Field(2.0, ge=0.0)
	fuzzy_boost: float = Field(0.25, ge=0.0)
	fuzziness: str = Field("AUTO", description="Fuzziness for the typo-tolerant variant")
	minimum_should_match: str = Field("1<75%")
	batch_should_terms: bool = Field(True, description="Score bare optional words as one clause")
	highlight_pre_tag: str = Field("<highlight>")
	highlight_post_tag: str = Field("</highlight>")
	default_size: int = Field(50, ge=0, le=10000)


class ScrollConfig(BaseModel):
	"""
	Full-index scan configuration.
	"""

	keep_alive: str = Field("30s", description="Server-side cursor lifetime between pulls")
	page_size: int = Field(1000, ge=1, le=10000)


class MaintenanceConfig(BaseModel):
	"""
	Retention settings for daily indexes.

	Notes:
	- retention_days maps an index prefix to the number of days kept.
	- cleanup_batch_size bounds how many unaliased indexes one run deletes.
	"""

	retention_days: Dict[str, int] = Field(
		default_factory=lambda: {
			"raw-syslog": 90,
			"msvistalog": 90,
			"sqllog": 60,
			"cylancelog": 180,
			"wsalog": 30,
		}
	)
	cleanup_batch_size: int = Field(100, ge=1)


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.
	"""

	model_config = SettingsConfigDict(
		env_prefix="LOGSEARCH_",
		env_file=".env",
		env_nested_delimiter="__",
		extra="ignore",
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	elasticsearch: ElasticsearchConfig = ElasticsearchConfig()
	indexing: IndexingConfig = IndexingConfig()
	search: SearchConfig = SearchConfig()
	scroll: ScrollConfig = ScrollConfig()
	maintenance: MaintenanceConfig = MaintenanceConfig()

	def model_post_init(self, __context: object) -> None:
		self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
