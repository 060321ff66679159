"""Background scheduling - arq cron job and the cycle lock"""
