"""
Command Line Interface for Stack Deployer

Provides commands for:
- init: Write a starter configuration file
- provision: Create the security group and launch the instance
- status: Show state and address of an instance
- bootstrap: Run the bootstrap commands on a host
- scaffold: Write the Ansible inventory, playbook and roles
- configure: Scaffold and run ansible-playbook
- deploy: All of the above in order
"""

import argparse
import json
import os
import sys

from loguru import logger

from .configs import ConfigLoader
from .main import StackDeployer
from .utils.logger import configure_logger


def setup_logger(verbose: bool = False):
    configure_logger("DEBUG" if verbose else "INFO")


def get_deployer(args) -> StackDeployer:
    deployer = StackDeployer.from_config_file(args.config)
    if not args.verbose:
        configure_logger(deployer.config.log_level)
    return deployer


# === Init Command ===

def init_command(args):
    setup_logger(args.verbose)

    if os.path.exists(args.output) and not args.force:
        logger.error(f"{args.output} already exists (use --force to overwrite)")
        return 1

    ConfigLoader.save_to_file(ConfigLoader.default_config(), args.output)

    logger.info(f"Configuration template written to {args.output}")
    logger.info("Please edit image_id, key_name, key_path and repo_url before deployment.")
    return 0


# === Provision Command ===

def provision_command(args):
    setup_logger(args.verbose)

    try:
        result = get_deployer(args).provision()
    except Exception as e:
        logger.error(f"Provisioning failed: {e}")
        return 1

    print(result.public_ip)
    return 0


# === Status Command ===

def status_command(args):
    setup_logger(args.verbose)

    try:
        info = get_deployer(args).status(args.instance_id)
    except Exception as e:
        logger.error(f"Status failed: {e}")
        return 1

    print(f"{info.instance_id} {info.state.value} {info.public_ip or '-'}")
    return 0


# === Bootstrap Command ===

def bootstrap_command(args):
    setup_logger(args.verbose)

    try:
        get_deployer(args).bootstrap(args.host, use_script=args.script)
    except Exception as e:
        logger.error(f"Bootstrap failed: {e}")
        return 1

    return 0


# === Scaffold Command ===

def scaffold_command(args):
    setup_logger(args.verbose)

    try:
        project = get_deployer(args).scaffold(args.host)
    except Exception as e:
        logger.error(f"Scaffold failed: {e}")
        return 1

    for path in project.written:
        print(path)
    return 0


# === Configure Command ===

def configure_command(args):
    setup_logger(args.verbose)

    try:
        get_deployer(args).configure(args.host, check_mode=args.check)
    except Exception as e:
        logger.error(f"Configuration failed: {e}")
        return 1

    return 0


# === Deploy Command ===

def deploy_command(args):
    setup_logger(args.verbose)

    logger.info("Starting deployment...")

    try:
        result = get_deployer(args).deploy(use_script=args.script)
    except Exception as e:
        logger.error(f"Deployment failed: {e}")
        return 1

    if args.output:
        with open(args.output, "w") as f:
            json.dump(result, f, indent=2)
        logger.info(f"Results saved to {args.output}")

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stack-deployer",
        description="Provision one EC2 instance and install NGINX, Node.js and MongoDB on it",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Initialize a new config file
  stack-deployer init -o deploy.toml

  # Launch the instance and print its public IP
  stack-deployer -c deploy.toml provision

  # Run the bootstrap commands on it
  stack-deployer -c deploy.toml bootstrap 203.0.113.10

  # Apply the web server, database and application roles
  stack-deployer -c deploy.toml configure 203.0.113.10

  # Everything in one go
  stack-deployer -c deploy.toml deploy
        """
    )

    # Global arguments
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("-c", "--config", default="deploy.toml", help="Configuration file path")

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Write a starter configuration file")
    init_parser.add_argument("-o", "--output", default="deploy.toml", help="Output config file path")
    init_parser.add_argument("-f", "--force", action="store_true", help="Overwrite existing file")
    init_parser.set_defaults(func=init_command)

    provision_parser = subparsers.add_parser("provision", help="Create security group and launch the instance")
    provision_parser.set_defaults(func=provision_command)

    status_parser = subparsers.add_parser("status", help="Show instance state and public IP")
    status_parser.add_argument("instance_id", help="EC2 instance id")
    status_parser.set_defaults(func=status_command)

    bootstrap_parser = subparsers.add_parser("bootstrap", help="Run the bootstrap commands on a host")
    bootstrap_parser.add_argument("host", help="Public IP of the instance")
    bootstrap_parser.add_argument("--script", action="store_true", help="Upload the commands as one script and run it")
    bootstrap_parser.set_defaults(func=bootstrap_command)

    scaffold_parser = subparsers.add_parser("scaffold", help="Write Ansible inventory, playbook and roles")
    scaffold_parser.add_argument("host", help="Public IP of the instance")
    scaffold_parser.set_defaults(func=scaffold_command)

    configure_parser = subparsers.add_parser("configure", help="Scaffold and run ansible-playbook")
    configure_parser.add_argument("host", help="Public IP of the instance")
    configure_parser.add_argument("--check", action="store_true", help="Dry run (ansible --check)")
    configure_parser.set_defaults(func=configure_command)

    deploy_parser = subparsers.add_parser("deploy", help="Provision, bootstrap and configure")
    deploy_parser.add_argument("--script", action="store_true", help="Bootstrap via uploaded script")
    deploy_parser.add_argument("-o", "--output", help="Output results to JSON file")
    deploy_parser.set_defaults(func=deploy_command)

    return parser


def main(argv=None):
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
