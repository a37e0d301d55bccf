from datetime import date
import logging

from google.cloud import bigquery
from webanalytics import AnalyticsBigQuery, Funnel, FunnelStep

TABLE_ID = "my-project.analytics.events"
SITE_ID = "example.com"
TZ = "Europe/Copenhagen"

logging.basicConfig(level=logging.INFO)

client = bigquery.Client()
analytics = AnalyticsBigQuery(table_id=TABLE_ID, site_id=SITE_ID, tz=TZ, client=client)

signup = Funnel(
    id="signup",
    name="Signup",
    dashboard_id="main",
    steps=[
        FunnelStep(name="Landing", filter={"column": "url", "operator": "=", "values": ["/"]}),
        FunnelStep(name="Pricing", filter={"column": "url", "operator": "contains", "values": ["pricing"]}),
        FunnelStep(name="Signup", filter={"column": "url", "operator": "=", "values": ["/signup"]}),
    ],
)
funnel = analytics.request_funnel(signup, start=date(2024, 11, 1), end=date(2024, 11, 7))
for step in funnel.steps:
    print(f"{step.step.name:<10} {step.visitors:>8} {step.dropoff_ratio:>6.1%}")

journey = analytics.request_user_journey(
    start=date(2024, 11, 1),
    end=date(2024, 11, 7),
    max_steps=3,
    filters=[{"column": "device_type", "operator": "=", "values": ["mobile"]}],
)
print(f"{len(journey.nodes)} nodes, {len(journey.links)} links")

heatmap = analytics.request_weekly_heatmap(start=date(2024, 11, 1), end=date(2024, 11, 28), metric="sessions")
print(heatmap.max_value)

vitals = analytics.request_web_vitals_summary(start=date(2024, 11, 1), end=date(2024, 11, 28))
print(vitals)
