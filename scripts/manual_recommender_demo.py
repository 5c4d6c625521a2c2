# scripts/manual_recommender_demo.py

import sys
from pathlib import Path

import pandas as pd

from game_recommender.catalog import InMemoryGameCatalog
from game_recommender.config import RecommenderConfig
from game_recommender.logging_utils import configure_logger
from game_recommender.service.recommender_service import RecommenderService
from game_recommender.validators import validate_catalog_frame


BASE_DIR = Path(__file__).resolve().parents[1]
CATALOG_PATH = BASE_DIR / "data" / "released_games.json"


def load_and_normalize_catalog(path: Path) -> pd.DataFrame:
    """
    Load a catalog export (JSON array of game documents) and normalize it to
    the document schema expected by CatalogItem.from_document:
        - columns: steam_appid, name, genres, categories, platforms, ...
        - steam_appid -> str
    """
    df = pd.read_json(path)

    df.columns = [c.strip() for c in df.columns]

    rename_map = {
        "appid": "steam_appid",
        "app_id": "steam_appid",
        "price": "price_initial_usd",
        "positive_ratio": "positive_percentual",
    }
    for old, new in rename_map.items():
        if old in df.columns and new not in df.columns:
            df.rename(columns={old: new}, inplace=True)

    df["steam_appid"] = df["steam_appid"].astype(str)
    return df


def main() -> None:
    logger = configure_logger("game_recommender.demo")

    print(f"📥 Loading catalog from {CATALOG_PATH}...")
    catalog_df = load_and_normalize_catalog(CATALOG_PATH)
    validate_catalog_frame(catalog_df, logger=logger, step_name="demo_catalog")
    print("✅ catalog_df shape:", catalog_df.shape)

    # pandas turns missing numbers into NaN; from_document treats NaN as missing
    catalog = InMemoryGameCatalog.from_documents(catalog_df.to_dict("records"))

    if len(sys.argv) == 4:
        seed_names = sys.argv[1:4]
    else:
        # Pick three well-reviewed games automatically
        ranked = catalog_df.sort_values("review_score", ascending=False, kind="stable")
        seed_names = ranked["name"].drop_duplicates().head(3).tolist()

    print(f"\n🎮 Seed games: {seed_names}")

    service = RecommenderService(
        catalog,
        config=RecommenderConfig(top_k=10, random_seed=42),
        logger=logger,
    )
    response = service.recommend(seed_names)

    print("\n🔮 Recommendations:")
    if not response.recommendations:
        print("⚠️ No recommendations returned.")
    else:
        for rec in response.recommendations:
            print(f"  steam_appid={rec.identifier}, score={rec.score:.4f}, name={rec.name}")


if __name__ == "__main__":
    main()
