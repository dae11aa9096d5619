"""
phpMyAdmin generator — ``config.inc.php`` for the bundled copy.
"""

from __future__ import annotations

from provisioner.core.models.template import GeneratedFile
from provisioner.core.services.rendering import render

PHPMYADMIN_DOWNLOAD = (
    "https://files.phpmyadmin.net/phpMyAdmin/{version}/phpMyAdmin-{version}-all-languages.zip"
)

_CONFIG_INC = """\
<?php
/* Servers configuration */
$i = 0;

/* Server: MariaDB [1] */
$i++;
$cfg['Servers'][$i]['verbose'] = 'MariaDB';
$cfg['Servers'][$i]['host'] = '{{db_host}}';
$cfg['Servers'][$i]['port'] = '{{db_port}}';
$cfg['Servers'][$i]['socket'] = '';
$cfg['Servers'][$i]['auth_type'] = 'cookie';
$cfg['Servers'][$i]['AllowNoPassword'] = false;
/* End of servers configuration */

$cfg['blowfish_secret'] = '{{blowfish_secret}}';
$cfg['DefaultLang'] = 'en';
$cfg['ServerDefault'] = 1;
$cfg['UploadDir'] = '';
$cfg['SaveDir'] = '';
$cfg['TempDir'] = '{{install_path}}/tmp';
"""


def phpmyadmin_path(install_dir: str) -> str:
    return f"{install_dir}/public/phpmyadmin"


def generate_phpmyadmin_config(
    install_dir: str,
    blowfish_secret: str,
    db_host: str = "127.0.0.1",
    db_port: int = 3306,
) -> GeneratedFile:
    install_path = phpmyadmin_path(install_dir)
    path = f"{install_path}/config.inc.php"
    values = {
        "db_host": db_host,
        "db_port": db_port,
        "blowfish_secret": blowfish_secret,
        "install_path": install_path,
    }
    return GeneratedFile(
        path=path,
        content=render(_CONFIG_INC, values, name=path),
        mode=0o640,
        reason="phpMyAdmin configuration",
    )
