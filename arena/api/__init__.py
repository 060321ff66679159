"""HTTP API - cycle trigger, leaderboard and monitoring"""
