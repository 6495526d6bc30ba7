#!/usr/bin/env python3
"""
Sign in to Google Classroom and post the sight reading assignment.

This script drives the same flow as the web page: sign in with Google, grant
Classroom access, pick one of your active courses and create the assignment.

Usage:
    1. Create OAuth 2.0 credentials in Google Cloud Console:
       - Go to APIs & Services > Credentials
       - Create OAuth 2.0 Client ID (Desktop application type)
       - Download the credentials JSON file

    2. Run this script:
       python signin.py --credentials-file client_secrets.json

       Without --credentials-file the client configuration is read from the
       GOOGLE_OAUTH_CLIENT_CONFIG environment variable or Secret Manager.

    3. Visit the URL that is printed (or let the browser open with
       ENVIRONMENT=local), then choose a course when prompted.
"""

import argparse
import sys

import settings
from auth_flow import AuthFlowCoordinator
from controller import ClassroomController


def print_feedback(controller: ClassroomController):
    if controller.view.feedback:
        print(controller.view.feedback)


def choose_course(controller: ClassroomController) -> bool:
    """Prompt for a course. Returns False if the user gave up."""
    options = controller.view.course_options
    print("\nActive courses:")
    for index, option in enumerate(options, start=1):
        print(f"  {index}. {option.text} ({option.value})")

    while True:
        answer = input(f"Select a course [1-{len(options)}, blank to quit]: ").strip()
        if not answer:
            return False
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return controller.select_course(options[int(answer) - 1].value)
        print("Please enter one of the listed numbers.")


def main():
    parser = argparse.ArgumentParser(
        description='Create a Google Classroom assignment in one of your courses',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        '--credentials-file',
        help='Path to OAuth 2.0 client secrets JSON file'
    )
    parser.add_argument(
        '--project-id',
        help='Google Cloud Project ID holding the GOOGLE_OAUTH_CLIENT_CONFIG secret'
    )
    parser.add_argument(
        '--course-id',
        help='Create the assignment in this course without prompting'
    )

    args = parser.parse_args()

    settings.configure_logging()

    try:
        client_config = settings.load_client_config(args.credentials_file, args.project_id)
    except EnvironmentError as e:
        print(f"Error: {str(e)}")
        sys.exit(1)

    print("\n" + "="*60)
    print("SIGN IN WITH GOOGLE")
    print("="*60 + "\n")

    coordinator = AuthFlowCoordinator(client_config, open_browser=settings.is_local())
    controller = ClassroomController(coordinator)

    result = controller.sign_in()
    if not result.ok:
        print_feedback(controller)
        sys.exit(1)

    print(f"\n✓ Signed in as {result.session.identity.email}")
    print_feedback(controller)

    view = controller.view
    if not view.course_options:
        # Either the listing failed or there are no active courses
        sys.exit(1)

    if args.course_id:
        if not controller.select_course(args.course_id):
            print(f"Course {args.course_id} is not one of your active courses.")
            sys.exit(1)
    elif not choose_course(controller):
        print("No course selected.")
        return

    if not controller.create_assignment():
        print_feedback(controller)
        sys.exit(1)

    print(f"\n✓ {view.feedback}")


if __name__ == '__main__':
    main()
