"""Friendships between students and their joint-attendance streaks"""
