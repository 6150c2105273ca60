"""
ynh-user-helpers - gestione utenti applicativi (YunoHost) e di sistema per gli script delle app
"""
__version__ = "1.0.0"
__description__ = "Helper di gestione utenti per gli script delle app YunoHost (utenti applicativi e di sistema)"
