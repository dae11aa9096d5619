"""
Web server generator — panel virtual hosts and the PHP-FPM pool.

Four vhost shapes: nginx or Apache, each with TLS (port 80 redirects
to 443) or plain HTTP.  The OS family only changes the PHP socket, the
file location, and whether Apache runs PHP through mod_php.
"""

from __future__ import annotations

from provisioner.adapters.os_family.base import OSAdapter
from provisioner.core.models.plan import InstallPlan
from provisioner.core.models.template import GeneratedFile
from provisioner.core.services.rendering import render

# ── nginx ───────────────────────────────────────────────────────

_NGINX_REAL_IP = """\
server_tokens off;
set_real_ip_from 103.21.244.0/22;
set_real_ip_from 103.22.200.0/22;
set_real_ip_from 103.31.4.0/22;
set_real_ip_from 104.16.0.0/13;
set_real_ip_from 104.24.0.0/14;
set_real_ip_from 108.162.192.0/18;
set_real_ip_from 131.0.72.0/22;
set_real_ip_from 141.101.64.0/18;
set_real_ip_from 162.158.0.0/15;
set_real_ip_from 172.64.0.0/13;
set_real_ip_from 173.245.48.0/20;
set_real_ip_from 188.114.96.0/20;
set_real_ip_from 190.93.240.0/20;
set_real_ip_from 197.234.240.0/22;
set_real_ip_from 198.41.128.0/17;
set_real_ip_from 2400:cb00::/32;
set_real_ip_from 2606:4700::/32;
set_real_ip_from 2803:f800::/32;
set_real_ip_from 2405:b500::/32;
set_real_ip_from 2405:8100::/32;
set_real_ip_from 2a06:98c0::/29;
set_real_ip_from 2c0f:f248::/32;
real_ip_header X-Forwarded-For;

"""

_NGINX_PANEL_BODY = """\
    root {{install_dir}}/public;
    index index.php;

    access_log /var/log/nginx/pterodactyl.app-access.log;
    error_log  /var/log/nginx/pterodactyl.app-error.log error;

    # allow larger file uploads and longer script runtimes
    client_max_body_size 100m;
    client_body_timeout 120s;

    sendfile off;

    location / {
        try_files $uri $uri/ /index.php?$query_string;
    }

    location ~ \\.php$ {
        fastcgi_split_path_info ^(.+\\.php)(/.+)$;
        fastcgi_pass unix:{{php_socket}};
        fastcgi_index index.php;
        include fastcgi_params;
        fastcgi_param PHP_VALUE "upload_max_filesize = 100M \\n post_max_size=100M";
        fastcgi_param SCRIPT_FILENAME $document_root$fastcgi_script_name;
        fastcgi_param HTTP_PROXY "";
        fastcgi_intercept_errors off;
        fastcgi_buffer_size 16k;
        fastcgi_buffers 4 16k;
        fastcgi_connect_timeout 300;
        fastcgi_send_timeout 300;
        fastcgi_read_timeout 300;
    }

    location ~ /\\.ht {
        deny all;
    }
}
"""

_NGINX_SSL = _NGINX_REAL_IP + """\
server {
    listen 80;
    server_name {{domain}};
    return 301 https://$server_name$request_uri;
}

server {
    listen 443 ssl http2;
    server_name {{domain}};

    ssl_certificate /etc/letsencrypt/live/{{domain}}/fullchain.pem;
    ssl_certificate_key /etc/letsencrypt/live/{{domain}}/privkey.pem;
    ssl_session_cache shared:SSL:10m;
    ssl_protocols TLSv1.2 TLSv1.3;
    ssl_ciphers "ECDHE-ECDSA-AES128-GCM-SHA256:ECDHE-RSA-AES128-GCM-SHA256:ECDHE-ECDSA-AES256-GCM-SHA384:ECDHE-RSA-AES256-GCM-SHA384:ECDHE-ECDSA-CHACHA20-POLY1305:ECDHE-RSA-CHACHA20-POLY1305";
    ssl_prefer_server_ciphers on;

    add_header X-Content-Type-Options nosniff;
    add_header X-XSS-Protection "1; mode=block";
    add_header X-Robots-Tag none;
    add_header Content-Security-Policy "frame-ancestors 'self'";
    add_header X-Frame-Options DENY;
    add_header Referrer-Policy same-origin;

""" + _NGINX_PANEL_BODY

_NGINX_HTTP = _NGINX_REAL_IP + """\
server {
    listen 80;
    server_name {{domain}};

""" + _NGINX_PANEL_BODY

# ── Apache ──────────────────────────────────────────────────────

# Only Debian-like hosts run PHP through mod_php
_APACHE_MOD_PHP = """\
  php_value upload_max_filesize 100M
  php_value post_max_size 100M
"""

_APACHE_SSL_HEAD = """\
<VirtualHost *:80>
  ServerName {{domain}}

  RewriteEngine On
  RewriteCond %{HTTPS} !=on
  RewriteRule ^/?(.*) https://%{SERVER_NAME}/$1 [R,L]
</VirtualHost>

<VirtualHost *:443>
  ServerName {{domain}}
  DocumentRoot "{{install_dir}}/public"

  AllowEncodedSlashes On

"""

_APACHE_SSL_TAIL = """\
  <Directory "{{install_dir}}/public">
    Require all granted
    AllowOverride all
  </Directory>

  SSLEngine on
  SSLCertificateFile /etc/letsencrypt/live/{{domain}}/fullchain.pem
  SSLCertificateKeyFile /etc/letsencrypt/live/{{domain}}/privkey.pem
</VirtualHost>
"""

_APACHE_HTTP_HEAD = """\
<VirtualHost *:80>
  ServerName {{domain}}
  DocumentRoot "{{install_dir}}/public"

  AllowEncodedSlashes On

"""

_APACHE_HTTP_TAIL = """\
  <Directory "{{install_dir}}/public">
    Require all granted
    AllowOverride all
  </Directory>
</VirtualHost>
"""

# ── PHP-FPM pool (RHEL-like + nginx) ────────────────────────────

_PHP_FPM_POOL = """\
[pterodactyl]

user = {{user}}
group = {{user}}

listen = {{php_socket}}
listen.owner = {{user}}
listen.group = {{user}}
listen.mode = 0750

pm = ondemand
pm.max_children = 9
pm.process_idle_timeout = 10s
pm.max_requests = 200
"""


def vhost_template(plan: InstallPlan, adapter: OSAdapter, *, tls: bool) -> str:
    """Pick the raw vhost template for the web server and TLS mode."""
    if plan.webserver == "nginx":
        return _NGINX_SSL if tls else _NGINX_HTTP
    mod_php = _APACHE_MOD_PHP if adapter.family == "debian" else ""
    if tls:
        return _APACHE_SSL_HEAD + mod_php + _APACHE_SSL_TAIL
    return _APACHE_HTTP_HEAD + mod_php + _APACHE_HTTP_TAIL


def generate_vhost(
    plan: InstallPlan,
    adapter: OSAdapter,
    install_dir: str,
    *,
    tls: bool | None = None,
) -> GeneratedFile:
    """Render the panel virtual host.

    Args:
        plan: Supplies the web server and domain.
        adapter: Supplies the file location and PHP socket.
        install_dir: Panel root (``public/`` is served).
        tls: Override ``plan.tls``, e.g. for the HTTP-only fallback.
    """
    use_tls = plan.tls if tls is None else tls
    path = adapter.vhost_path(plan.webserver)
    values = {
        "domain": plan.domain,
        "install_dir": install_dir,
        "php_socket": adapter.php_fpm_socket(),
    }
    return GeneratedFile(
        path=path,
        content=render(vhost_template(plan, adapter, tls=use_tls), values, name=path),
        reason=f"{plan.webserver} virtual host ({'https' if use_tls else 'http'})",
    )


def generate_php_fpm_pool(plan: InstallPlan, adapter: OSAdapter) -> GeneratedFile | None:
    """Render the dedicated PHP-FPM pool, where the family needs one."""
    path = adapter.php_fpm_pool_path(plan.webserver)
    if path is None:
        return None
    values = {
        "user": adapter.run_as_user(plan.webserver),
        "php_socket": adapter.php_fpm_socket(),
    }
    return GeneratedFile(
        path=path,
        content=render(_PHP_FPM_POOL, values, name=path),
        reason="PHP-FPM pool for the panel",
    )
