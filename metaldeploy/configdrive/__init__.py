from metaldeploy.configdrive.builder import ConfigDrive  # noqa
from metaldeploy.configdrive.builder import ConfigDriveBuilder  # noqa
from metaldeploy.configdrive.userdata import UserData  # noqa
