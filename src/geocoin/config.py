"""Runtime configuration for geocoin."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from geocoin.world import WorldConfig


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="GEOCOIN_", env_file=".env", extra="ignore")

    app_name: str = "geocoin"
    log_level: str = "INFO"
    tile_size: float = Field(
        default=1e-4,
        description="Grid resolution in degrees. Changing it invalidates existing saves.",
    )
    neighborhood_size: int = Field(default=8, description="Cells spawned on each side of the player cell.")
    cache_spawn_probability: float = 0.1
    start_lat: float = 36.98949379578401
    start_lng: float = -122.06277128548504
    save_path: str = Field(
        default="~/.geocoin/game.json",
        description="File used by the CLI to persist the game between commands.",
    )

    def world_config(self) -> WorldConfig:
        return WorldConfig(
            tile_size=self.tile_size,
            neighborhood_size=self.neighborhood_size,
            spawn_probability=self.cache_spawn_probability,
            start_lat=self.start_lat,
            start_lng=self.start_lng,
        )


settings = Settings()
