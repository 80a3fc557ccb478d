"""
Playbook and role documents

The root playbook applies the roles in a fixed order: web server, database,
application. Role documents are plain task lists for the Ansible `apt`,
`apt_key`, `apt_repository`, `copy`, `file`, `service`, `git` and `shell`
modules; convergence is left entirely to Ansible.
"""

from typing import Any, Dict, List

from ..configs import DeploymentConfig


ROLE_ORDER = ("webserver", "database", "application")

NGINX_SITE_PATH = "/etc/nginx/sites-available/app"

NGINX_SITE_TEMPLATE = """\
server {{
    listen 80;
    server_name {server_name};

    location / {{
        proxy_pass http://127.0.0.1:{app_port};
        proxy_http_version 1.1;
        proxy_set_header Upgrade $http_upgrade;
        proxy_set_header Connection 'upgrade';
        proxy_set_header Host $host;
        proxy_cache_bypass $http_upgrade;
    }}
}}
"""


def build_playbook(cfg: DeploymentConfig) -> List[Dict[str, Any]]:
    return [{
        "name": "Provision web, database and application stack",
        "hosts": cfg.ansible.group,
        "become": True,
        "roles": list(ROLE_ORDER),
    }]


def _webserver_tasks(cfg: DeploymentConfig) -> List[Dict[str, Any]]:
    site = NGINX_SITE_TEMPLATE.format(server_name=cfg.ansible.server_name, app_port=cfg.ansible.app_port)
    return [
        {"name": "Install nginx", "apt": {"name": "nginx", "state": "present", "update_cache": True}},
        {
            "name": "Write reverse proxy site",
            "copy": {"dest": NGINX_SITE_PATH, "content": site, "mode": "0644"},
            "notify": "reload nginx",
        },
        {
            "name": "Enable reverse proxy site",
            "file": {"src": NGINX_SITE_PATH, "dest": "/etc/nginx/sites-enabled/app", "state": "link"},
            "notify": "reload nginx",
        },
        {
            "name": "Disable default site",
            "file": {"path": "/etc/nginx/sites-enabled/default", "state": "absent"},
            "notify": "reload nginx",
        },
        {"name": "Start nginx", "service": {"name": "nginx", "state": "started", "enabled": True}},
    ]


def _webserver_handlers() -> List[Dict[str, Any]]:
    return [{"name": "reload nginx", "service": {"name": "nginx", "state": "reloaded"}}]


def _database_tasks(cfg: DeploymentConfig) -> List[Dict[str, Any]]:
    version = cfg.ansible.mongodb_version
    repo = (
        "deb [ arch=amd64,arm64 ] https://repo.mongodb.org/apt/ubuntu "
        f"{{{{ ansible_distribution_release }}}}/mongodb-org/{version} multiverse"
    )
    return [
        {"name": "Install apt prerequisites", "apt": {"name": ["gnupg", "curl"], "state": "present"}},
        {
            "name": "Add MongoDB signing key",
            "apt_key": {"url": f"https://www.mongodb.org/static/pgp/server-{version}.asc", "state": "present"},
        },
        {
            "name": "Add MongoDB repository",
            "apt_repository": {"repo": repo, "state": "present", "filename": f"mongodb-org-{version}"},
        },
        {"name": "Install MongoDB", "apt": {"name": "mongodb-org", "state": "present", "update_cache": True}},
        {"name": "Start mongod", "service": {"name": "mongod", "state": "started", "enabled": True}},
    ]


def _application_tasks(cfg: DeploymentConfig) -> List[Dict[str, Any]]:
    # Same directory the bootstrap clone lands in; ~user is expanded on the host
    app_dir = cfg.bootstrap.remote_project_dir(cfg.ssh.user)
    as_user = {"become": True, "become_user": cfg.ssh.user}
    return [
        {
            "name": "Add NodeSource repository",
            "shell": f"curl -fsSL https://deb.nodesource.com/setup_{cfg.bootstrap.node_version}.x | bash -",
            "args": {"creates": "/etc/apt/sources.list.d/nodesource.list", "executable": "/bin/bash"},
        },
        {"name": "Install Node.js", "apt": {"name": "nodejs", "state": "present"}},
        {
            "name": "Check out application",
            "git": {"repo": cfg.bootstrap.repo_url, "dest": app_dir, "update": False},
            **as_user,
        },
        {
            "name": "Install application dependencies",
            "shell": "npm install",
            "args": {"chdir": app_dir},
            **as_user,
        },
        {
            "name": "Start application in background",
            "shell": f"nohup {cfg.ansible.app_start_command} > app.log 2>&1 &",
            "args": {"chdir": app_dir},
            "environment": {"PORT": str(cfg.ansible.app_port)},
            **as_user,
        },
    ]


def build_roles(cfg: DeploymentConfig) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    """Role name -> {"tasks": [...], "handlers": [...]} in ROLE_ORDER"""
    return {
        "webserver": {"tasks": _webserver_tasks(cfg), "handlers": _webserver_handlers()},
        "database": {"tasks": _database_tasks(cfg)},
        "application": {"tasks": _application_tasks(cfg)},
    }
