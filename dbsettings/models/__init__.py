# Import all models here so Base.metadata knows every table
from dbsettings.models.setting import Setting

__all__ = ['Setting']
