#!/usr/bin/env python3
"""
Diagnostic script: trust report for every agency in a seed data file.

Usage: python diagnose.py [path/to/seed_agencies.json]
"""
import asyncio
import sys
from pathlib import Path

from karmatic.adapters.review_store import JSONReviewStore
from karmatic.detection.trust_engine import trust_engine, get_trust_summary
import config


async def diagnose(path: Path):
    print("=" * 60)
    print("Karmatic Trust Diagnostic")
    print("=" * 60)

    store = JSONReviewStore(path)
    print(f"\nLoading seed data from {path}...")
    count = store.load()
    print(f"Total agencies: {count}")

    print("\n" + "=" * 60)
    print("Agency Analysis:")
    print("=" * 60)

    for agency in store.list_agencies():
        reviews = await store.get_reviews(agency.place_id)
        analysis, metrics = trust_engine.analyze_with_metrics(reviews)
        report = trust_engine.get_detailed_report(reviews, analysis)

        print(f"\n🏢 Agency: {agency.name} ({agency.place_id})")
        print(f"   {get_trust_summary(analysis)}")
        print(f"   Reviews: {metrics.processed_reviews_count} "
              f"(avg {metrics.average_rating_sample}, karma {metrics.karma_score_sample})")
        print(f"   Activity: {metrics.review_frequency_category.value} - "
              f"{metrics.review_frequency_sample or 'N/A'}, "
              f"{metrics.avg_reviews_per_month} reseñas/mes")
        print(f"   Fraud keywords: {report['fraud_keywords']['total_count']}")
        for keyword, mentions in report["fraud_keywords"]["detected"].items():
            print(f"      - {keyword}: {mentions}")
        for flag in analysis.red_flags:
            print(f"   🚩 {flag}")
        for flag in analysis.green_flags:
            print(f"   ✅ {flag}")

    print("\n" + "=" * 60)
    print("Diagnostic Complete")
    print("=" * 60)


if __name__ == "__main__":
    seed_path = Path(sys.argv[1]) if len(sys.argv) > 1 else config.SEED_DATA_FILE
    asyncio.run(diagnose(seed_path))
