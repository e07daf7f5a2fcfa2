"""
Bounded-concurrency scraper for paginated quote listings.

Pages are fetched and parsed concurrently, at most ``pool_capacity`` at a
time, and their records are streamed to a single consumer as they arrive.
See quotegate.driver.async_driver for the pipeline itself.
"""
