from portal.views.admin_handlers import delete_account as delete_account
from portal.views.admin_handlers import list_users as list_users
from portal.views.admin_handlers import lock as lock
from portal.views.admin_handlers import set_dashboard_access as set_dashboard_access
from portal.views.admin_handlers import set_file_access_keyword as set_file_access_keyword
from portal.views.admin_handlers import unlock as unlock
from portal.views.auth_handlers import current_user as current_user
from portal.views.auth_handlers import register as register
from portal.views.auth_handlers import sign_in as sign_in
from portal.views.auth_handlers import sign_out as sign_out
from portal.views.auth_handlers import verify_code as verify_code
from portal.views.file_handlers import add_file as add_file
from portal.views.file_handlers import delete_file as delete_file
from portal.views.file_handlers import list_files as list_files
from portal.views.file_handlers import rename_file as rename_file
from portal.views.file_handlers import space_usage as space_usage
