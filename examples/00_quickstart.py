import sys

from gety import DispatchConfig, FilterConfig, GetyClient, HttpConfig, Method

urls = [
    "https://example.com/",
    "https://example.com/robots.txt",
    "https://example.org/",
]

client = GetyClient(
    HttpConfig(proxy="http://127.0.0.1:8080", timeout_s=10),
    DispatchConfig(
        method=Method.GET,
        max_workers=4,
        rate_limit_s=1.0,
        filters=FilterConfig(status_codes=frozenset({200})),
    ),
)
try:
    stats = client.run(urls)
finally:
    client.close()

print(f"reported={stats.reported} filtered={stats.filtered} failed={stats.failed}", file=sys.stderr)
